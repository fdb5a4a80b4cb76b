"""Tests for the cart state machine."""
from decimal import Decimal

import pytest

from medcart.domain import commands as cmd
from medcart.domain.errors import PromotionNotApplicableError
from medcart.domain.models import CartState
from medcart.services.cart_machine import transition
from tests.conftest import NOW, make_item


@pytest.fixture
def run(code_catalog, id_factory):
    def _run(state, command):
        return transition(state, command, code_catalog, NOW, id_factory=id_factory)
    return _run


@pytest.fixture
def one_line(run):
    return run(CartState(), cmd.AddItem(item=make_item(quantity=2)))


class TestAddItem:
    def test_add_appends_line_with_fresh_id(self, one_line):
        assert len(one_line.items) == 1
        line = one_line.items[0]
        assert line.id == "cart_1"
        assert line.quantity == 2
        assert line.total_price == Decimal("59.98")
        assert one_line.recently_added == ["coq10"]

    def test_same_product_and_dosage_merges(self, run, one_line):
        state = run(one_line, cmd.AddItem(item=make_item(quantity=3)))
        assert len(state.items) == 1
        assert state.items[0].quantity == 5
        assert state.items[0].id == "cart_1"
        assert state.items[0].total_price == Decimal("149.95")

    def test_different_dosage_is_separate_line(self, run, one_line):
        state = run(one_line, cmd.AddItem(item=make_item(dosage="200mg")))
        assert [i.dosage for i in state.items] == ["100mg", "200mg"]

    def test_recent_history_is_bounded(self, run):
        state = CartState()
        for n in range(8):
            state = run(state, cmd.AddItem(item=make_item(product_id=f"p{n}")))
        assert state.recently_added == ["p7", "p6", "p5", "p4", "p3"]

    def test_input_state_not_mutated(self, run, one_line):
        before = one_line.model_dump()
        run(one_line, cmd.AddItem(item=make_item(quantity=1)))
        assert one_line.model_dump() == before


class TestRemoveAndQuantity:
    def test_remove_item(self, run, one_line):
        state = run(one_line, cmd.RemoveItem(item_id="cart_1"))
        assert state.items == []
        assert state.recently_added == []

    def test_remove_keeps_history_while_product_remains(self, run, one_line):
        state = run(one_line, cmd.AddItem(item=make_item(dosage="200mg")))
        state = run(state, cmd.RemoveItem(item_id="cart_1"))
        assert [i.id for i in state.items] == ["cart_2"]
        assert state.recently_added == ["coq10"]

        state = run(state, cmd.RemoveItem(item_id="cart_2"))
        assert state.recently_added == []

    def test_remove_is_idempotent(self, run, one_line):
        once = run(one_line, cmd.RemoveItem(item_id="cart_1"))
        twice = run(once, cmd.RemoveItem(item_id="cart_1"))
        assert twice == once

    def test_unknown_id_is_noop(self, run, one_line):
        assert run(one_line, cmd.RemoveItem(item_id="nope")) is one_line
        assert run(one_line, cmd.UpdateQuantity(item_id="nope", quantity=4)) is one_line
        assert run(one_line, cmd.ToggleAutoRefill(item_id="nope")) is one_line

    def test_update_quantity_sets_value(self, run, one_line):
        state = run(one_line, cmd.UpdateQuantity(item_id="cart_1", quantity=4))
        assert state.items[0].quantity == 4
        assert state.items[0].total_price == Decimal("119.96")

    @pytest.mark.parametrize("qty", [0, -3])
    def test_update_quantity_non_positive_removes(self, run, one_line, qty):
        state = run(one_line, cmd.UpdateQuantity(item_id="cart_1", quantity=qty))
        assert state.find_item("cart_1") is None


class TestUpdateItem:
    def test_shallow_merge(self, run, one_line):
        state = run(one_line, cmd.UpdateItem(
            item_id="cart_1",
            updates={"prescriber_id": "dr-1", "bundle_discount_percent": "10"},
        ))
        line = state.items[0]
        assert line.prescriber_id == "dr-1"
        assert line.total_price == Decimal("53.98")
        assert line.name == "CoQ10"

    def test_id_cannot_be_overwritten(self, run, one_line):
        state = run(one_line, cmd.UpdateItem(item_id="cart_1", updates={"id": "other"}))
        assert state.items[0].id == "cart_1"

    def test_zero_quantity_removes(self, run, one_line):
        state = run(one_line, cmd.UpdateItem(item_id="cart_1", updates={"quantity": 0}))
        assert state.items == []

    @pytest.mark.parametrize("qty", ["0", 0.0, "-2", -1.0])
    def test_quantity_that_coerces_to_non_positive_removes(self, run, one_line, qty):
        state = run(one_line, cmd.UpdateItem(item_id="cart_1", updates={"quantity": qty}))
        assert state.items == []
        assert state.recently_added == []

    def test_numeric_string_quantity_is_coerced(self, run, one_line):
        state = run(one_line, cmd.UpdateItem(item_id="cart_1", updates={"quantity": "3"}))
        assert state.items[0].quantity == 3


class TestPromotions:
    def test_apply_normalizes_code(self, run, one_line):
        state = run(one_line, cmd.ApplyPromotion(code=" save10 "))
        assert state.applied_codes == ["SAVE10"]

    def test_apply_twice_is_idempotent(self, run, one_line):
        once = run(one_line, cmd.ApplyPromotion(code="SAVE10"))
        twice = run(once, cmd.ApplyPromotion(code="SAVE10"))
        assert twice is once
        assert twice.applied_codes == ["SAVE10"]

    def test_unknown_code_rejected(self, run, one_line):
        with pytest.raises(PromotionNotApplicableError) as exc:
            run(one_line, cmd.ApplyPromotion(code="BOGUS"))
        assert exc.value.code == "BOGUS"
        assert one_line.applied_codes == []

    def test_expired_code_rejected(self, run, one_line):
        with pytest.raises(PromotionNotApplicableError):
            run(one_line, cmd.ApplyPromotion(code="OLD5"))

    def test_remove_promotion(self, run, one_line):
        state = run(one_line, cmd.ApplyPromotion(code="SAVE10"))
        state = run(state, cmd.RemovePromotion(code="save10"))
        assert state.applied_codes == []
        assert run(state, cmd.RemovePromotion(code="SAVE10")) is state


class TestToggles:
    def test_set_shipping_method(self, run, one_line):
        state = run(one_line, cmd.SetShippingMethod(item_id="cart_1", method="overnight"))
        assert state.items[0].shipping_method == "overnight"

    def test_subscription_on_defaults_monthly(self, run, one_line):
        state = run(one_line, cmd.ToggleSubscription(item_id="cart_1"))
        line = state.items[0]
        assert line.is_subscription is True
        assert line.subscription_frequency == "monthly"
        assert line.auto_refill is True

    def test_subscription_with_frequency_then_off(self, run, one_line):
        state = run(one_line, cmd.ToggleSubscription(item_id="cart_1", frequency="quarterly"))
        assert state.items[0].subscription_frequency == "quarterly"

        state = run(state, cmd.ToggleSubscription(item_id="cart_1"))
        line = state.items[0]
        assert line.is_subscription is False
        assert line.auto_refill is False

    def test_toggle_auto_refill(self, run, one_line):
        state = run(one_line, cmd.ToggleAutoRefill(item_id="cart_1"))
        assert state.items[0].auto_refill is True
        state = run(state, cmd.ToggleAutoRefill(item_id="cart_1"))
        assert state.items[0].auto_refill is False


class TestClearAndVersion:
    def test_clear_keeps_loyalty_points(self, run, one_line):
        state = run(one_line, cmd.ApplyPromotion(code="SAVE10"))
        state = state.model_copy(update={"loyalty_points": 900})
        cleared = run(state, cmd.ClearCart())
        assert cleared.items == []
        assert cleared.applied_codes == []
        assert cleared.recently_added == []
        assert cleared.loyalty_points == 900

    def test_version_bumps_only_on_change(self, run, one_line):
        assert one_line.version == 1
        changed = run(one_line, cmd.UpdateQuantity(item_id="cart_1", quantity=7))
        assert changed.version == 2
        same = run(changed, cmd.UpdateQuantity(item_id="missing", quantity=7))
        assert same.version == 2

    def test_commands_parse_from_payload(self, run):
        command = cmd.parse_command({
            "type": "ADD_ITEM",
            "item": {"product_id": "omega3", "dosage": "1000mg", "unit_price": "24.99", "quantity": 2},
        })
        state = run(CartState(), command)
        assert state.items[0].total_price == Decimal("49.98")
