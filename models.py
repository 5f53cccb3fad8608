"""
Product records exchanged with the products API.
"""
from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Dict

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer, field_validator


class Category(str, Enum):
    PHONES = "Phones"
    COVERS_AND_PROTECTORS = "Covers & Protectors"
    LAPTOPS = "Laptops"
    ACCESSORIES = "Accessories"


CATEGORIES = [category.value for category in Category]

FIELD_LABELS = {
    "name": "Product name",
    "category": "Category",
    "price": "Price",
    "image": "Image URL",
}


class ProductDraft(BaseModel):
    """A product as the client submits it: everything except the server-assigned id."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    name: str = Field(min_length=1)
    category: Category
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    image: str = Field(min_length=1)

    @field_validator("price", mode="before")
    @classmethod
    def blank_price_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            raise ValueError("Price is required")
        return value

    @field_serializer("price")
    def price_as_number(self, price: Decimal) -> float:
        return float(price)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", include={"name", "category", "price", "image"})

    @classmethod
    def from_form(cls, values: Dict[str, Any]) -> "ProductDraft":
        """Validate raw form values; raises ``pydantic.ValidationError``."""
        return cls.model_validate({name: values.get(name) for name in FIELD_LABELS})


class Product(ProductDraft):
    id: str = Field(validation_alias=AliasChoices("_id", "id"))

    @field_validator("id", mode="before")
    @classmethod
    def id_as_text(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    def draft(self) -> ProductDraft:
        return ProductDraft(name=self.name, category=self.category, price=self.price, image=self.image)
