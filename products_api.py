from __future__ import annotations

import logging
from typing import Any, Dict, List
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)


class ProductsApiError(Exception):
    def __init__(self, message: str, status: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class ProductsApi:
    """Thin client for the external products collection.

    One method per REST verb. Responses are returned as decoded JSON; transport
    failures and error statuses raise ``ProductsApiError``. There is no retry.
    """

    def __init__(self, base_url: str, timeout: float | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def item_url(self, product_id: str) -> str:
        return f"{self.base_url}/{quote(str(product_id), safe='')}"

    def json_request(self, method: str, url: str, payload: Dict[str, Any] | None = None) -> Any:
        try:
            response = requests.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.exception("Products API %s %s failed", method, url)
            raise ProductsApiError("Products API is unavailable") from exc

        if not response.content:
            body: Any = None
        else:
            try:
                body = response.json()
            except ValueError:
                body = {"raw": response.text}

        if response.status_code >= 400:
            logger.warning("Products API %s %s returned %s", method, url, response.status_code)
            raise ProductsApiError(
                "Products API returned an error",
                status=response.status_code,
                body=body,
            )
        return body

    def list_products(self) -> List[Dict[str, Any]]:
        return self.json_request("GET", self.base_url) or []

    def get_product(self, product_id: str) -> Dict[str, Any]:
        return self.json_request("GET", self.item_url(product_id))

    def create_product(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.json_request("POST", self.base_url, payload=payload)

    def update_product(self, product_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.json_request("PUT", self.item_url(product_id), payload=payload)

    def patch_product(self, product_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.json_request("PATCH", self.item_url(product_id), payload=payload)

    def delete_product(self, product_id: str) -> None:
        self.json_request("DELETE", self.item_url(product_id))
