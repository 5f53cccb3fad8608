from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Dict, List

from flask import Flask
from reactpy import component, event, hooks, html
from reactpy.backend.flask import Options, configure
from reactpy.backend.hooks import use_location

import settings
from catalog import (
    REDIRECT_DELAY_SECONDS,
    ROUTE_CREATE,
    ROUTE_EDIT,
    ROUTE_LIST,
    edit_path,
    empty_form_values,
    form_values_from_product,
    format_price,
    load_product_safe,
    load_products_safe,
    match_route,
    perform_delete,
    save_product,
    submitted_form_values,
)
from models import CATEGORIES, FIELD_LABELS
from pattern_gate import COLOR_HEX, COLORS, GateSnapshot, PatternGate
from products_api import ProductsApi
from session_store import AdminSession, SessionStore

app = Flask(__name__)

API = ProductsApi(settings.PRODUCTS_API_URL, timeout=settings.PRODUCTS_API_TIMEOUT_SECONDS)
SESSION = AdminSession(SessionStore(settings.ADMIN_SESSION_PATH))

PLACEHOLDER_IMAGE = (
    "data:image/svg+xml;utf8,"
    "<svg xmlns='http://www.w3.org/2000/svg' width='40' height='40' viewBox='0 0 40 40'>"
    "<rect width='40' height='40' fill='%23F3F4F6'/><path d='M12 16H28V24H12V16Z' fill='%23D1D5DB'/></svg>"
)

GLASS_CSS = """
:root {
  color-scheme: light;
  --bg-2: #86c9ff;
  --bg-3: #356eff;
  --bg-4: #f2f6ff;
  --glass: rgba(255, 255, 255, 0.58);
  --glass-2: rgba(255, 255, 255, 0.32);
  --border: rgba(255, 255, 255, 0.5);
  --text: #0b1220;
  --muted: #56627a;
  --shadow: 0 24px 60px rgba(10, 20, 45, 0.22);
  --shadow-soft: 0 12px 30px rgba(10, 20, 45, 0.14);
  --radius: 22px;
  --accent: #0a84ff;
  --accent-2: #6bd7ff;
  --danger: #e5484d;
}

* { box-sizing: border-box; }

body {
  margin: 0;
  font-family: "SF Pro Text", "Helvetica Neue", "Segoe UI", sans-serif;
  color: var(--text);
  background: linear-gradient(155deg, var(--bg-2) 0%, var(--bg-3) 55%, var(--bg-4) 100%);
  min-height: 100vh;
}

.page { max-width: 1120px; margin: 0 auto; padding: 32px 24px 88px; display: grid; gap: 24px; }

.glass-surface {
  background: linear-gradient(135deg, var(--glass), var(--glass-2));
  border: 1px solid var(--border);
  border-radius: var(--radius);
  box-shadow: var(--shadow), inset 0 1px 0 rgba(255, 255, 255, 0.45);
  backdrop-filter: blur(26px) saturate(180%);
  -webkit-backdrop-filter: blur(26px) saturate(180%);
}

.card { padding: 24px; }

.navbar {
  max-width: 1120px;
  margin: 20px auto 0;
  padding: 14px 20px;
  display: flex;
  align-items: center;
  justify-content: space-between;
  gap: 16px;
  flex-wrap: wrap;
}

.nav-title { font-size: 18px; font-weight: 600; }
.nav-actions { display: flex; gap: 12px; align-items: center; flex-wrap: wrap; }

h1, h2, h3 { margin: 0 0 8px; font-weight: 600; letter-spacing: -0.02em; }
.meta { color: var(--muted); font-size: 14px; }

.section-head { display: flex; align-items: center; justify-content: space-between; gap: 12px; flex-wrap: wrap; margin-bottom: 16px; }

.btn {
  border: 1px solid var(--border);
  background: linear-gradient(135deg, rgba(255, 255, 255, 0.8), rgba(255, 255, 255, 0.35));
  padding: 10px 16px;
  border-radius: 999px;
  cursor: pointer;
  font-size: 13px;
  font-weight: 600;
  color: var(--text);
  box-shadow: var(--shadow-soft);
  text-decoration: none;
  display: inline-flex;
  align-items: center;
  gap: 6px;
}

.btn.primary { background: linear-gradient(160deg, var(--accent-2), var(--accent) 55%, #0a4bd6 100%); color: #fff; }
.btn.ghost { background: rgba(255, 255, 255, 0.14); box-shadow: none; }
.btn.danger { background: var(--danger); color: #fff; border-color: transparent; }
.btn[disabled] { cursor: wait; opacity: 0.6; pointer-events: none; }

.link { color: var(--accent); text-decoration: none; font-weight: 600; }
.link:hover { text-decoration: underline; }

.badge { display: inline-flex; padding: 4px 10px; border-radius: 999px; font-size: 12px; font-weight: 600; background: rgba(86, 160, 255, 0.2); color: #133d7a; }

.table-wrap { border-radius: 16px; overflow-x: auto; }
.table { width: 100%; border-collapse: collapse; font-size: 14px; }
.table th, .table td { text-align: left; padding: 12px; border-bottom: 1px solid rgba(15, 23, 42, 0.08); }
.table th { font-size: 11px; letter-spacing: 0.12em; text-transform: uppercase; color: var(--muted); background: rgba(255, 255, 255, 0.6); }
.table tr:last-child td { border-bottom: none; }
.thumb { width: 40px; height: 40px; border-radius: 8px; object-fit: cover; }
.row-actions { display: flex; gap: 8px; }

.skeleton-row { height: 48px; border-radius: 12px; background: rgba(255, 255, 255, 0.45); margin-bottom: 10px; }
.empty-state { text-align: center; padding: 48px 16px; display: grid; gap: 8px; justify-items: center; }
.empty-icon { font-size: 40px; }

.modal { position: fixed; inset: 0; background: rgba(8, 16, 32, 0.45); display: flex; align-items: center; justify-content: center; padding: 24px; z-index: 40; }
.modal-card { width: min(480px, 95vw); padding: 24px; display: grid; gap: 12px; }
.warning-text { color: var(--danger); font-size: 13px; }

.form { display: grid; gap: 14px; }
.field { display: grid; gap: 6px; }
.label { font-size: 12px; text-transform: uppercase; letter-spacing: 0.12em; color: var(--muted); }
.input {
  width: 100%;
  padding: 12px 14px;
  border-radius: 12px;
  border: 1px solid rgba(255, 255, 255, 0.4);
  background: linear-gradient(135deg, rgba(255, 255, 255, 0.9), rgba(255, 255, 255, 0.5));
  font-size: 14px;
  color: var(--text);
}
.input[disabled] { opacity: 0.75; cursor: not-allowed; }
.segmented { display: grid; grid-template-columns: repeat(auto-fit, minmax(120px, 1fr)); gap: 10px; }
.seg-btn { padding: 10px 12px; border-radius: 999px; border: 1px solid var(--border); background: rgba(255, 255, 255, 0.6); color: var(--muted); cursor: pointer; font-weight: 600; }
.seg-btn.active { background: rgba(10, 132, 255, 0.18); border-color: rgba(10, 132, 255, 0.5); color: var(--accent); }
.form-actions { display: flex; gap: 10px; flex-wrap: wrap; justify-content: flex-end; }
.image-preview img { max-width: 160px; border-radius: 12px; }

.message { padding: 12px 14px; border-radius: 12px; font-size: 14px; }
.message.success { background: rgba(68, 201, 140, 0.18); color: #0f5132; }
.message.error { background: rgba(255, 99, 99, 0.2); color: #7a1010; }

.gate { min-height: 100vh; display: flex; align-items: center; justify-content: center; padding: 24px; }
.gate-card { width: min(520px, 95vw); padding: 32px; display: grid; gap: 18px; text-align: center; position: relative; }
.lock-icon { font-size: 48px; }
.pattern-preview { display: flex; gap: 10px; justify-content: center; flex-wrap: wrap; }
.pattern-dot { width: 48px; height: 48px; border-radius: 50%; display: flex; align-items: center; justify-content: center; color: #fff; font-weight: 700; }
.progress-track { height: 10px; background: rgba(255, 255, 255, 0.6); border-radius: 999px; overflow: hidden; }
.progress-track span { display: block; height: 100%; background: linear-gradient(90deg, var(--accent), var(--accent-2)); }
.color-grid { display: grid; grid-template-columns: repeat(3, 1fr); gap: 12px; }
.color-btn { height: 64px; border-radius: 16px; border: 2px solid transparent; cursor: pointer; color: #fff; font-weight: 600; text-transform: capitalize; }
.color-btn.used { border-color: rgba(255, 255, 255, 0.9); }
.color-btn[disabled] { cursor: wait; opacity: 0.6; }
.gate-overlay { position: absolute; inset: 0; display: grid; place-items: center; background: rgba(255, 255, 255, 0.7); border-radius: var(--radius); font-weight: 600; }

@media (max-width: 720px) {
  .page { padding: 24px 16px 70px; }
  .card { padding: 16px; }
  .navbar { margin: 16px 16px 0; }
  .color-grid { grid-template-columns: repeat(2, 1fr); }
}
"""


def nav_link(label: str, target: str, navigate: Callable[[str], None], class_name: str = "link"):
    @event(prevent_default=True)
    def follow(event_data: Dict[str, Any]) -> None:
        navigate(target)

    return html.a({"href": target, "class": class_name, "on_click": follow}, label)


def url_sync_script(path: str) -> str:
    """Browser snippet that mirrors the dashboard path into the address bar.

    Back/forward reloads the page so the server renders the view for the
    restored URL.
    """
    return (
        "(() => {\n"
        f"  const target = {json.dumps(path)};\n"
        "  if (window.location.pathname !== target) {\n"
        "    window.history.pushState({}, '', target);\n"
        "  }\n"
        "  if (!window.catalogAdminHistory) {\n"
        "    window.catalogAdminHistory = true;\n"
        "    window.addEventListener('popstate', () => window.location.reload());\n"
        "  }\n"
        "})()"
    )


@component
def LoginGate(on_login: Callable[[], None]):
    snapshot, set_snapshot = hooks.use_state(None)
    gate_ref = hooks.use_ref(None)
    if gate_ref.current is None:
        gate_ref.current = PatternGate(on_success=on_login, on_change=set_snapshot)
    gate: PatternGate = gate_ref.current

    @hooks.use_effect(dependencies=[])
    def dispose_on_unmount():
        return gate.dispose

    view: GateSnapshot = snapshot or gate.snapshot()

    if view.step == "welcome":
        body = html.div(
            {"class": "welcome-step"},
            html.div({"class": "lock-icon"}, "🔒"),
            html.p({"class": "meta"}, "Click the button to see your unique access pattern"),
            html.button({"class": "btn primary", "type": "button", "on_click": lambda e: gate.start()}, "Start Authentication"),
        )
    elif view.step == "pattern":
        body = html.div(
            html.h3("Memorize this sequence:"),
            html.div(
                {"class": "pattern-preview"},
                *[
                    html.div(
                        {"key": index, "class": "pattern-dot", "style": {"backgroundColor": COLOR_HEX[color]}},
                        str(index + 1),
                    )
                    for index, color in enumerate(view.visible_pattern)
                ],
            ),
            html.p({"class": "meta"}, "Pattern will disappear soon..."),
        )
    else:
        body = html.div(
            {"class": "form"},
            html.h3("Now click the colors in order:"),
            html.div({"class": "progress-track"}, html.span({"style": {"width": f"{view.progress_percent}%"}})),
            html.p({"class": "meta"}, f"{len(view.entered)} / {view.pattern_length} colors entered"),
            html.div(
                {"class": "color-grid"},
                *[
                    html.button(
                        {
                            "key": color.value,
                            "type": "button",
                            "class": f"color-btn {'used' if color in view.entered else ''}",
                            "style": {"backgroundColor": COLOR_HEX[color]},
                            "disabled": not view.accepts_selection,
                            "on_click": lambda e, color=color: gate.select(color),
                        },
                        color.value,
                    )
                    for color in COLORS
                ],
            ),
            html.button(
                {"class": "btn ghost", "type": "button", "disabled": view.is_authenticating, "on_click": lambda e: gate.reset()},
                "New Pattern",
            ),
        )

    return html.div(
        {"class": "gate"},
        html.div(
            {"class": "gate-card glass-surface"},
            html.div(html.h1("Admin Dashboard"), html.div({"class": "meta"}, "Pattern Authentication Required")),
            body,
            *([html.div({"class": "message error"}, f"❌ {view.error}")] if view.error else []),
            *([html.div({"class": "gate-overlay"}, "Authenticating...")] if view.is_authenticating else []),
        ),
    )


@component
def ProductList(api: ProductsApi, navigate: Callable[[str], None]):
    products, set_products = hooks.use_state([])
    loading, set_loading = hooks.use_state(True)
    error, set_error = hooks.use_state("")
    pending_delete, set_pending_delete = hooks.use_state(None)
    deleting, set_deleting = hooks.use_state(None)
    busy_ref = hooks.use_ref(False)

    async def refresh() -> None:
        set_loading(True)
        data = await asyncio.to_thread(load_products_safe, api)
        set_products(data["products"])
        set_error(data["error"])
        set_loading(False)

    @hooks.use_effect(dependencies=[])
    async def load_on_mount():
        await refresh()

    def request_delete(product) -> None:
        if busy_ref.current:
            return
        set_pending_delete(product)

    def cancel_delete(event_data: Dict[str, Any] | None = None) -> None:
        if busy_ref.current:
            return
        set_pending_delete(None)

    async def confirm_delete(event_data: Dict[str, Any] | None = None) -> None:
        product = pending_delete
        if product is None or busy_ref.current:
            return
        busy_ref.current = True
        set_deleting(product.id)
        try:
            if await asyncio.to_thread(perform_delete, api, product):
                await refresh()
        finally:
            busy_ref.current = False
            set_deleting(None)
            set_pending_delete(None)

    if loading and not products:
        return html.section(
            {"class": "card glass-surface"},
            html.h1("Product Management"),
            *[html.div({"key": i, "class": "skeleton-row"}) for i in range(5)],
        )

    header = html.div(
        {"class": "section-head"},
        html.div(html.h1("Product Management"), html.div({"class": "meta"}, f"{len(products)} products")),
        nav_link("+ Add New Product", "/create", navigate, "btn primary"),
    )

    if products:
        body = html.div(
            {"class": "table-wrap"},
            html.table(
                {"class": "table"},
                html.thead(html.tr(html.th("Product"), html.th("Category"), html.th("Price"), html.th("Image"), html.th("Actions"))),
                html.tbody(
                    *[
                        html.tr(
                            {"key": product.id},
                            html.td(product.name),
                            html.td(html.span({"class": "badge"}, product.category.value)),
                            html.td(format_price(product.price)),
                            html.td(html.img({"class": "thumb", "src": product.image or PLACEHOLDER_IMAGE, "alt": product.name})),
                            html.td(
                                html.div(
                                    {"class": "row-actions"},
                                    nav_link("Edit", edit_path(product.id), navigate, "btn ghost"),
                                    html.button(
                                        {
                                            "class": "btn danger",
                                            "type": "button",
                                            "disabled": deleting == product.id,
                                            "on_click": lambda e, product=product: request_delete(product),
                                        },
                                        "Deleting..." if deleting == product.id else "Delete",
                                    ),
                                )
                            ),
                        )
                        for product in products
                    ]
                ),
            ),
        )
    else:
        body = html.div(
            {"class": "empty-state"},
            html.div({"class": "empty-icon"}, "📦"),
            html.h3("No Products Found"),
            html.p({"class": "meta"}, "Start by creating your first product"),
            nav_link("Create Product", "/create", navigate, "btn primary"),
        )

    modal = None
    if pending_delete is not None:
        modal = html.div(
            {"class": "modal"},
            html.div(
                {"class": "modal-card glass-surface"},
                html.h3("Confirm Delete"),
                html.p(f'Are you sure you want to delete "{pending_delete.name}"?'),
                html.p({"class": "warning-text"}, "This action cannot be undone."),
                html.div(
                    {"class": "form-actions"},
                    html.button({"class": "btn ghost", "type": "button", "disabled": bool(deleting), "on_click": cancel_delete}, "Cancel"),
                    html.button({"class": "btn danger", "type": "button", "disabled": bool(deleting), "on_click": confirm_delete}, "Delete"),
                ),
            ),
        )

    return html.section(
        {"class": "card glass-surface"},
        header,
        *([html.div({"class": "message error"}, error)] if error else []),
        body,
        *([modal] if modal else []),
    )


@component
def ProductForm(api: ProductsApi, product_id: str | None, navigate: Callable[[str], None]):
    form_values, set_form_values = hooks.use_state(empty_form_values)
    loading, set_loading = hooks.use_state(bool(product_id))
    saving, set_saving = hooks.use_state(False)
    message, set_message = hooks.use_state({"text": "", "type": ""})
    busy_ref = hooks.use_ref(False)
    field_event_ts_ref = hooks.use_ref({})
    submit_intent_ref = hooks.use_ref(False)

    @hooks.use_effect(dependencies=[product_id])
    async def load_existing():
        if not product_id:
            return
        set_loading(True)
        result = await asyncio.to_thread(load_product_safe, api, product_id)
        if result["product"] is not None:
            set_form_values(form_values_from_product(result["product"]))
        else:
            set_message({"text": result["error"], "type": "error"})
        set_loading(False)

    def set_field(name: str, value: Any) -> None:
        if busy_ref.current:
            return
        set_form_values(lambda prev: {**prev, name: value})
        set_message({"text": "", "type": ""})

    def set_field_from_event(name: str, event_data: Dict[str, Any]) -> None:
        if busy_ref.current:
            return
        ts_raw = event_data.get("timeStamp")
        if ts_raw is not None:
            try:
                ts = float(ts_raw)
            except (TypeError, ValueError):
                ts = None
            else:
                if ts <= field_event_ts_ref.current.get(name, -1.0):
                    return
                field_event_ts_ref.current[name] = ts
        value = event_data.get("target", {}).get("value", "")
        set_field(name, value)

    def request_submit(event_data: Dict[str, Any] | None = None) -> None:
        if busy_ref.current:
            return
        submit_intent_ref.current = True

    @event(prevent_default=True)
    async def handle_submit(event_data: Dict[str, Any]) -> None:
        if busy_ref.current or not submit_intent_ref.current:
            return
        submit_intent_ref.current = False
        values = submitted_form_values(form_values, event_data)
        set_form_values(values)
        busy_ref.current = True
        set_saving(True)
        set_message({"text": "", "type": ""})
        saved = False
        try:
            outcome = await asyncio.to_thread(save_product, api, values, product_id)
            set_message(outcome.message)
            saved = outcome.ok
        finally:
            # A saved form stays locked until the redirect unmounts it.
            if not saved:
                busy_ref.current = False
                set_saving(False)
        if saved:
            await asyncio.sleep(REDIRECT_DELAY_SECONDS)
            navigate("/")

    def render_input(name: str, attrs: Dict[str, Any]):
        return html.div(
            {"class": "field"},
            html.label({"class": "label", "html_for": name}, FIELD_LABELS[name]),
            html.input(
                {
                    "id": name,
                    "name": name,
                    "class": "input",
                    "default_value": form_values.get(name, ""),
                    "required": True,
                    "disabled": saving,
                    "on_change": lambda event_data: set_field_from_event(name, event_data),
                    "on_blur": lambda event_data: set_field_from_event(name, event_data),
                    **attrs,
                }
            ),
        )

    if loading:
        return html.section({"class": "card glass-surface"}, html.p({"class": "meta"}, "Loading product..."))

    category = form_values.get("category", "")
    image = form_values.get("image", "")
    if saving:
        submit_label = "Updating..." if product_id else "Creating..."
    else:
        submit_label = "Update Product" if product_id else "Create Product"

    fields: List[Any] = [
        render_input("name", {"placeholder": "Enter product name"}),
        html.div(
            {"class": "field"},
            html.span({"class": "label"}, FIELD_LABELS["category"]),
            html.div(
                {"class": "segmented"},
                *[
                    html.button(
                        {
                            "key": option,
                            "type": "button",
                            "class": f"seg-btn {'active' if category == option else ''}",
                            "disabled": saving,
                            "on_click": lambda e, option=option: set_field("category", option),
                        },
                        option,
                    )
                    for option in CATEGORIES
                ],
            ),
        ),
        render_input("price", {"type": "number", "min": 0, "step": "0.01", "placeholder": "Enter price"}),
        render_input("image", {"placeholder": "Enter image URL"}),
    ]
    if image:
        fields.append(html.div({"class": "image-preview"}, html.img({"src": image, "alt": "Preview"})))

    return html.section(
        {"class": "card glass-surface"},
        html.h2("Edit Product" if product_id else "Create New Product"),
        *([html.div({"class": f"message {message['type']}"}, message["text"])] if message.get("text") else []),
        html.form(
            {"class": "form", "on_submit": handle_submit},
            *fields,
            html.div(
                {"class": "form-actions"},
                html.button({"type": "button", "class": "btn ghost", "disabled": saving, "on_click": lambda e: navigate("/")}, "Cancel"),
                html.button({"type": "submit", "class": "btn primary", "disabled": saving, "on_click": request_submit}, submit_label),
            ),
        ),
    )


@component
def Dashboard(on_logout: Callable[[], None]):
    location = use_location()
    path, set_path = hooks.use_state(location.pathname or "/")
    route = match_route(path)

    if route.name == ROUTE_LIST:
        body = ProductList(API, set_path, key="list")
    elif route.name == ROUTE_CREATE:
        body = ProductForm(API, None, set_path, key="create")
    elif route.name == ROUTE_EDIT:
        body = ProductForm(API, route.product_id, set_path, key=f"edit-{route.product_id}")
    else:
        app.logger.info("No view for path %s", path)
        body = html.section(
            {"class": "card glass-surface"},
            html.h1("Page not found"),
            html.p({"class": "meta"}, f"Nothing lives at {path}."),
            nav_link("Back to products", "/", set_path),
        )

    return html.div(
        html.header(
            {"class": "navbar glass-surface"},
            html.div({"class": "nav-title"}, "Admin Dashboard"),
            html.nav(
                {"class": "nav-actions"},
                nav_link("Products", "/", set_path),
                nav_link("Add Product", "/create", set_path),
                html.button({"class": "btn ghost", "type": "button", "on_click": lambda e: on_logout()}, "Log out"),
            ),
        ),
        html.main({"class": "page"}, body),
        html.script({"key": f"url-{path}"}, url_sync_script(path)),
    )


@component
def App():
    authenticated, set_authenticated = hooks.use_state(SESSION.start)

    def handle_login() -> None:
        set_authenticated(SESSION.login())

    def handle_logout() -> None:
        set_authenticated(SESSION.logout())

    return html.div(
        {"id": "catalog-admin-root"},
        html.style(GLASS_CSS),
        Dashboard(handle_logout, key="dashboard") if authenticated else LoginGate(handle_login, key="gate"),
    )


configure(
    app,
    App,
    Options(
        head=(
            {"tagName": "title", "children": ["Admin Dashboard"]},
            {
                "tagName": "meta",
                "attributes": {"name": "viewport", "content": "width=device-width, initial-scale=1"},
            },
        )
    ),
)


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=settings.PORT, debug=settings.FLASK_DEBUG)
