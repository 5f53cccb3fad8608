import asyncio
import copy
import threading
from typing import Any, Callable, Dict, Iterator, List

import pytest

from products_api import ProductsApiError


class ManualTimer:
    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose clock only moves when the test calls ``advance``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: List[ManualTimer] = []

    def schedule(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def pending(self) -> List[ManualTimer]:
        return [timer for timer in self.timers if not timer.cancelled and timer.due is not None]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = sorted((t for t in self.pending() if t.due <= target), key=lambda t: t.due)
            if not due:
                break
            timer = due[0]
            self.now = timer.due
            timer.due = None
            timer.callback()
        self.now = target


class FakeProductsApi:
    """In-memory stand-in for the products service."""

    def __init__(self, rows: List[Dict[str, Any]] | None = None) -> None:
        self.rows = {str(row["_id"]): dict(row) for row in rows or []}
        self.calls: List[tuple] = []
        self.fail_on: set = set()
        self.next_id = 1
        # Set to a threading.Event to park calls until the test releases them.
        self.hold: threading.Event | None = None

    def _maybe_fail(self, verb: str) -> None:
        if self.hold is not None:
            self.hold.wait(5)
        if verb in self.fail_on:
            raise ProductsApiError("Products API returned an error", status=500, body={"error": "boom"})

    def list_products(self) -> List[Dict[str, Any]]:
        self.calls.append(("GET",))
        self._maybe_fail("GET")
        return [dict(row) for row in self.rows.values()]

    def get_product(self, product_id: str) -> Dict[str, Any]:
        self.calls.append(("GET", product_id))
        self._maybe_fail("GET")
        if product_id not in self.rows:
            raise ProductsApiError("Products API returned an error", status=404, body={"error": "not found"})
        return dict(self.rows[product_id])

    def create_product(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("POST", payload))
        self._maybe_fail("POST")
        product_id = f"p{self.next_id}"
        self.next_id += 1
        self.rows[product_id] = {"_id": product_id, **payload}
        return dict(self.rows[product_id])

    def update_product(self, product_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("PUT", product_id, payload))
        self._maybe_fail("PUT")
        self.rows[product_id] = {"_id": product_id, **payload}
        return dict(self.rows[product_id])

    def delete_product(self, product_id: str) -> None:
        self.calls.append(("DELETE", product_id))
        self._maybe_fail("DELETE")
        self.rows.pop(product_id, None)

    def verbs(self) -> List[str]:
        return [call[0] for call in self.calls]


def walk(node: Any) -> Iterator[Dict[str, Any]]:
    if isinstance(node, dict):
        yield node
        for child in node.get("children", []):
            yield from walk(child)


def text_of(node: Any) -> str:
    if isinstance(node, str):
        return node
    if isinstance(node, dict):
        return "".join(text_of(child) for child in node.get("children", []))
    return ""


def attribute(node: Dict[str, Any], name: str) -> Any:
    attributes = node.get("attributes", {})
    words = name.split("_")
    camel = words[0] + "".join(word.title() for word in words[1:])
    for key in (name, camel, "className" if name == "class" else ""):
        if key in attributes:
            return attributes[key]
    return None


def find_all(root: Any, tag: str | None = None, text: str | None = None, class_name: str | None = None) -> List[Dict[str, Any]]:
    found = []
    for node in walk(root):
        if tag is not None and node.get("tagName") != tag:
            continue
        if text is not None and text_of(node).strip() != text:
            continue
        if class_name is not None and class_name not in str(attribute(node, "class") or "").split():
            continue
        found.append(node)
    return found


def is_disabled(node: Dict[str, Any]) -> bool:
    return bool(attribute(node, "disabled"))


class LayoutDriver:
    """Renders a ReactPy layout without a browser and delivers events to it."""

    def __init__(self, layout: Any) -> None:
        self.layout = layout
        self.model: Dict[str, Any] = {}

    async def render(self, timeout: float = 3.0) -> Dict[str, Any]:
        update = await asyncio.wait_for(self.layout.render(), timeout)
        self._apply(update["path"], copy.deepcopy(update["model"]))
        return self.model

    def _apply(self, path: str, model: Dict[str, Any]) -> None:
        parts = [part for part in path.split("/") if part]
        if not parts:
            self.model = model
            return
        node: Any = self.model
        for part in parts[:-1]:
            node = node[int(part)] if isinstance(node, list) else node[part]
        last = parts[-1]
        if isinstance(node, list):
            node[int(last)] = model
        else:
            node[last] = model

    async def render_until(self, predicate: Callable[[Dict[str, Any]], Any], attempts: int = 25) -> Dict[str, Any]:
        for _ in range(attempts):
            if self.model and predicate(self.model):
                return self.model
            await self.render()
        assert predicate(self.model)
        return self.model

    def has_text(self, text: str) -> bool:
        return bool(find_all(self.model, text=text))

    def one(self, tag: str | None = None, text: str | None = None, class_name: str | None = None, within: Any = None) -> Dict[str, Any]:
        nodes = find_all(self.model if within is None else within, tag=tag, text=text, class_name=class_name)
        assert nodes, f"no <{tag}> with text {text!r} / class {class_name!r}"
        return nodes[0]

    async def fire(self, node: Dict[str, Any], name: str, data: Dict[str, Any] | None = None) -> None:
        handlers = node.get("eventHandlers", {})
        camel = "on" + "".join(word.title() for word in name.split("_")[1:])
        handler = handlers.get(name) or handlers.get(camel)
        assert handler is not None, f"{node.get('tagName')} has no {name} handler"
        await self.layout.deliver({"type": "layout-event", "target": handler["target"], "data": [data or {}]})

    async def click(self, node: Dict[str, Any]) -> None:
        await self.fire(node, "on_click")

    async def type_into(self, field_id: str, value: str) -> None:
        field = next(node for node in walk(self.model) if attribute(node, "id") == field_id)
        await self.fire(field, "on_change", {"target": {"value": value}})


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def fake_api():
    return FakeProductsApi(
        [
            {"_id": "a1", "name": "Pixel 8", "category": "Phones", "price": 85000, "image": "http://x/pixel.png"},
            {"_id": "a2", "name": "USB-C Cable", "category": "Accessories", "price": "750.50", "image": "http://x/cable.png"},
        ]
    )
