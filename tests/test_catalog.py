"""
Tests for the list/form view logic.
Run with: pytest tests/test_catalog.py
"""

from decimal import Decimal

from catalog import (
    CREATED_MESSAGE,
    LOAD_PRODUCT_ERROR,
    LOAD_PRODUCTS_ERROR,
    ROUTE_CREATE,
    ROUTE_EDIT,
    ROUTE_LIST,
    ROUTE_NOT_FOUND,
    SAVE_ERROR,
    UPDATED_MESSAGE,
    Route,
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
from conftest import FakeProductsApi

CASE_FORM = {"name": "Case", "category": "Covers & Protectors", "price": "500", "image": "http://x/y.png"}


class TestRoutes:
    def test_known_routes(self):
        assert match_route("/") == Route(ROUTE_LIST)
        assert match_route("") == Route(ROUTE_LIST)
        assert match_route("/create") == Route(ROUTE_CREATE)
        assert match_route("/edit/65f0") == Route(ROUTE_EDIT, "65f0")
        assert match_route("/edit/65f0/?tab=1") == Route(ROUTE_EDIT, "65f0")

    def test_unknown_routes(self):
        assert match_route("/edit").name == ROUTE_NOT_FOUND
        assert match_route("/products/1").name == ROUTE_NOT_FOUND

    def test_edit_path_round_trips(self):
        assert match_route(edit_path("abc")) == Route(ROUTE_EDIT, "abc")

    def test_edit_path_quotes_slashes(self):
        assert edit_path("a/b") == "/edit/a%2Fb"
        assert match_route(edit_path("a/b")) == Route(ROUTE_EDIT, "a/b")


class TestFormatting:
    def test_whole_prices_use_grouping(self):
        assert format_price(Decimal("85000")) == "Ksh 85,000"
        assert format_price(500) == "Ksh 500"

    def test_fractional_prices_keep_cents(self):
        assert format_price(Decimal("750.5")) == "Ksh 750.50"


class TestListView:
    def test_load_products(self, fake_api):
        data = load_products_safe(fake_api)
        assert data["error"] == ""
        assert [p.name for p in data["products"]] == ["Pixel 8", "USB-C Cable"]

    def test_load_failure_gives_message_and_empty_list(self, fake_api):
        fake_api.fail_on.add("GET")
        data = load_products_safe(fake_api)
        assert data["products"] == []
        assert data["error"] == LOAD_PRODUCTS_ERROR
        assert data["status"] == 500

    def test_malformed_rows_are_skipped(self):
        api = FakeProductsApi([{"_id": "x", "name": "Odd", "category": "Tablets", "price": 1, "image": "i"}])
        assert load_products_safe(api)["products"] == []

    def test_cancelled_delete_sends_nothing(self, fake_api):
        """The confirmation was dismissed, so there is nothing pending to delete."""
        assert perform_delete(fake_api, None) is False
        assert "DELETE" not in fake_api.verbs()
        assert "a1" in [p.id for p in load_products_safe(fake_api)["products"]]

    def test_confirmed_delete_removes_product(self, fake_api):
        pending = load_products_safe(fake_api)["products"][0]
        assert perform_delete(fake_api, pending) is True
        assert pending.id not in [p.id for p in load_products_safe(fake_api)["products"]]

    def test_delete_failure_is_reported_not_raised(self, fake_api):
        pending = load_products_safe(fake_api)["products"][0]
        fake_api.fail_on.add("DELETE")
        assert perform_delete(fake_api, pending) is False


class TestFormView:
    def test_create_then_list_includes_product(self):
        api = FakeProductsApi()
        outcome = save_product(api, CASE_FORM)

        assert outcome.ok
        assert outcome.message == {"text": CREATED_MESSAGE, "type": "success"}
        assert api.calls[0] == (
            "POST",
            {"name": "Case", "category": "Covers & Protectors", "price": 500.0, "image": "http://x/y.png"},
        )
        listed = load_products_safe(api)["products"]
        assert [(p.name, p.category.value) for p in listed] == [("Case", "Covers & Protectors")]

    def test_update_uses_put(self, fake_api):
        outcome = save_product(fake_api, CASE_FORM, product_id="a1")
        assert outcome.message["text"] == UPDATED_MESSAGE
        assert fake_api.calls[-1][:2] == ("PUT", "a1")

    def test_invalid_values_never_reach_the_api(self, fake_api):
        outcome = save_product(fake_api, {**CASE_FORM, "price": "-5"})
        assert not outcome.ok
        assert outcome.message["type"] == "error"
        assert outcome.message["text"].startswith("Price")
        assert fake_api.calls == []

    def test_missing_category_names_the_field(self, fake_api):
        outcome = save_product(fake_api, {**CASE_FORM, "category": ""})
        assert outcome.message["text"].startswith("Category")

    def test_unrepresentable_prices_never_reach_the_api(self, fake_api):
        for price in ("1e400", "1.234"):
            outcome = save_product(fake_api, {**CASE_FORM, "price": price})
            assert not outcome.ok
            assert outcome.message["text"].startswith("Price")
        assert fake_api.calls == []

    def test_save_failure_keeps_form(self, fake_api):
        fake_api.fail_on.add("POST")
        outcome = save_product(fake_api, CASE_FORM)
        assert outcome == (False, {"text": SAVE_ERROR, "type": "error"})

    def test_edit_prefill(self, fake_api):
        result = load_product_safe(fake_api, "a2")
        assert form_values_from_product(result["product"]) == {
            "name": "USB-C Cable",
            "category": "Accessories",
            "price": "750.50",
            "image": "http://x/cable.png",
        }

    def test_edit_prefill_failure(self, fake_api):
        result = load_product_safe(fake_api, "missing")
        assert result == {"product": None, "error": LOAD_PRODUCT_ERROR}

    def test_blank_form(self):
        assert empty_form_values() == {"name": "", "category": "", "price": "", "image": ""}


class TestSubmittedValues:
    def test_named_controls_override_tracked_values(self):
        event_data = {
            "target": {
                "elements": [
                    {"tagName": "INPUT", "name": "name", "value": "Case"},
                    {"tagName": "BUTTON", "value": ""},
                    {"tagName": "INPUT", "name": "price", "value": "12"},
                    {"tagName": "INPUT", "name": "image", "value": "http://x"},
                ]
            }
        }
        values = submitted_form_values({"name": "old", "category": "Phones"}, event_data)
        assert values == {"name": "Case", "category": "Phones", "price": "12", "image": "http://x"}

    def test_unnamed_controls_follow_form_order(self):
        event_data = {
            "currentTarget": {
                "elements": [
                    {"tagName": "input", "value": "Case"},
                    {"tagName": "input", "value": None},
                    {"tagName": "input", "value": "http://x"},
                ]
            }
        }
        values = submitted_form_values({"category": "Laptops"}, event_data)
        assert values == {"category": "Laptops", "name": "Case", "price": "", "image": "http://x"}

    def test_no_elements_keeps_tracked_values(self):
        assert submitted_form_values({"name": "Case"}, {}) == {"name": "Case"}
