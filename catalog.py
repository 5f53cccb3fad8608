from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, NamedTuple
from urllib.parse import quote, unquote

from pydantic import ValidationError

from models import FIELD_LABELS, Product, ProductDraft
from products_api import ProductsApi, ProductsApiError

logger = logging.getLogger(__name__)

ROUTE_LIST = "list"
ROUTE_CREATE = "create"
ROUTE_EDIT = "edit"
ROUTE_NOT_FOUND = "not_found"

LOAD_PRODUCTS_ERROR = "Error loading products. Please refresh to try again."
LOAD_PRODUCT_ERROR = "Error loading product"
SAVE_ERROR = "Error saving product. Please try again."
CREATED_MESSAGE = "Product created successfully!"
UPDATED_MESSAGE = "Product updated successfully!"
REDIRECT_DELAY_SECONDS = 1.5

# Fields typed into text inputs, in form order. Category is picked with buttons.
INPUT_FIELDS = ["name", "price", "image"]


class Route(NamedTuple):
    name: str
    product_id: str | None = None


class SaveOutcome(NamedTuple):
    ok: bool
    message: Dict[str, str]


def match_route(path: str | None) -> Route:
    parts = [part for part in str(path or "/").split("?", 1)[0].split("/") if part]
    if not parts:
        return Route(ROUTE_LIST)
    if parts == ["create"]:
        return Route(ROUTE_CREATE)
    if len(parts) == 2 and parts[0] == "edit":
        return Route(ROUTE_EDIT, unquote(parts[1]))
    return Route(ROUTE_NOT_FOUND)


def edit_path(product_id: str) -> str:
    return f"/edit/{quote(str(product_id), safe='')}"


def format_price(price: Decimal | float | int) -> str:
    value = Decimal(str(price))
    if value == value.to_integral_value():
        return f"Ksh {int(value):,}"
    return f"Ksh {value:,.2f}"


def empty_form_values() -> Dict[str, str]:
    return {name: "" for name in FIELD_LABELS}


def form_values_from_product(product: Product) -> Dict[str, str]:
    return {
        "name": product.name,
        "category": product.category.value,
        "price": str(product.price),
        "image": product.image,
    }


def describe_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    loc = first.get("loc") or ("",)
    label = FIELD_LABELS.get(str(loc[0]), str(loc[0]))
    if first.get("type") == "enum":
        return f"{label}: choose one of the listed categories."
    return f"{label}: {first.get('msg', 'invalid value')}"


def parse_products(rows: Any) -> List[Product]:
    products: List[Product] = []
    for row in rows or []:
        try:
            products.append(Product.model_validate(row))
        except ValidationError:
            logger.warning("Skipping malformed product row: %r", row)
    return products


def load_products_safe(api: ProductsApi) -> Dict[str, Any]:
    try:
        rows = api.list_products()
    except ProductsApiError as exc:
        logger.exception("Error loading products")
        return {"products": [], "error": LOAD_PRODUCTS_ERROR, "status": exc.status}
    return {"products": parse_products(rows), "error": "", "status": None}


def load_product_safe(api: ProductsApi, product_id: str) -> Dict[str, Any]:
    try:
        product = Product.model_validate(api.get_product(product_id))
    except (ProductsApiError, ValidationError):
        logger.exception("Error loading product %s", product_id)
        return {"product": None, "error": LOAD_PRODUCT_ERROR}
    return {"product": product, "error": ""}


def save_product(api: ProductsApi, values: Dict[str, Any], product_id: str | None = None) -> SaveOutcome:
    """Validate form values, then create (no id) or fully update the product."""
    try:
        draft = ProductDraft.from_form(values)
    except ValidationError as exc:
        return SaveOutcome(False, {"text": describe_validation_error(exc), "type": "error"})

    try:
        if product_id:
            api.update_product(product_id, draft.to_payload())
            text = UPDATED_MESSAGE
        else:
            api.create_product(draft.to_payload())
            text = CREATED_MESSAGE
    except ProductsApiError:
        logger.exception("Error saving product")
        return SaveOutcome(False, {"text": SAVE_ERROR, "type": "error"})
    return SaveOutcome(True, {"text": text, "type": "success"})


def perform_delete(api: ProductsApi, pending: Product | None) -> bool:
    """Delete the product awaiting confirmation; nothing is sent without one."""
    if pending is None:
        return False
    try:
        api.delete_product(pending.id)
    except ProductsApiError:
        logger.exception("Error deleting product %s", pending.id)
        return False
    return True


def submitted_form_values(current: Dict[str, Any], event_data: Dict[str, Any]) -> Dict[str, Any]:
    """Merge the values the browser reports on submit over the tracked field state."""
    values = dict(current)
    target = event_data.get("currentTarget") or event_data.get("target") or {}
    elements = target.get("elements") or []
    controls: List[Dict[str, Any]] = []
    for element in elements:
        if not isinstance(element, dict):
            continue
        tag = str(element.get("tagName") or "").upper()
        if tag in {"INPUT", "TEXTAREA", "SELECT"}:
            controls.append(element)

    named = {str(control.get("name")): control for control in controls if control.get("name") in INPUT_FIELDS}
    if named:
        pairs = [(name, named[name]) for name in INPUT_FIELDS if name in named]
    else:
        pairs = list(zip(INPUT_FIELDS, controls))
    for name, control in pairs:
        value = control.get("value", "")
        values[name] = "" if value is None else str(value)
    return values
