# Overview: Pytest coverage for approval thresholds and priority bands.

import pytest

from crm.models import ActionType
from crm.services.threshold_service import (
    ESCALATION,
    discount_percentage,
    get_approval_priority,
    price_change_percentage,
    requires_approval,
)


class TestRequiresApproval:

    @pytest.mark.parametrize("amount, expected", [
        (4_999_999, False),
        (5_000_000, False),
        (5_000_001, True),
        (12_000_000, True),
    ])
    def test_sale_amount_threshold_is_strict(self, amount, expected):
        assert requires_approval(ActionType.SALE_CREATE, {"amount_cents": amount}) is expected

    @pytest.mark.parametrize("pct, expected", [(15, False), (15.01, True), (20, True), (0, False)])
    def test_discount_threshold(self, pct, expected):
        assert requires_approval("DISCOUNT_APPLY", {"discount_percentage": pct}) is expected

    @pytest.mark.parametrize("old, new, expected", [
        (100_000, 110_000, False),
        (100_000, 111_000, True),
        (100_000, 89_000, True),
        (100_000, 90_000, False),
        (0, 0, False),
        (0, 100, True),
    ])
    def test_product_price_change(self, old, new, expected):
        data = {"old_price_cents": old, "new_price_cents": new}
        assert requires_approval(ActionType.PRODUCT_UPDATE, data) is expected

    def test_high_value_customer(self):
        assert requires_approval(ActionType.CUSTOMER_UPDATE, {"customer_value": "HIGH_VALUE"}) is True
        assert requires_approval(ActionType.CUSTOMER_UPDATE, {"customer_value": "REGULAR"}) is False

    def test_unknown_action_type_never_requires_approval(self):
        assert requires_approval("TELEPORT", {"amount_cents": 99_999_999}) is False

    def test_missing_or_empty_data_never_requires_approval(self):
        assert requires_approval(ActionType.SALE_CREATE, None) is False
        assert requires_approval(ActionType.SALE_CREATE, {}) is False

    def test_non_numeric_amount_is_ignored(self):
        assert requires_approval(ActionType.SALE_CREATE, {"amount_cents": "9000000"}) is False
        assert requires_approval(ActionType.SALE_CREATE, {"amount_cents": True}) is False

    def test_types_without_rules(self):
        for action_type in (ActionType.SALE_DELETE, ActionType.FLOOR_ASSIGNMENT, ActionType.CUSTOMER_CREATE):
            assert requires_approval(action_type, {"amount_cents": 99_999_999}) is False


class TestApprovalPriority:

    @pytest.mark.parametrize("amount, expected", [
        (6_000_000, "MEDIUM"),
        (7_500_000, "MEDIUM"),
        (7_500_001, "HIGH"),
        (10_000_000, "HIGH"),
        (10_000_001, "URGENT"),
    ])
    def test_sale_amount_bands(self, amount, expected):
        assert get_approval_priority(ActionType.SALE_CREATE, {"amount_cents": amount}) == expected

    def test_other_types_default_to_medium(self):
        assert get_approval_priority(ActionType.PRODUCT_UPDATE, {"amount_cents": 99_999_999}) == "MEDIUM"
        assert get_approval_priority("NOT_A_TYPE", None) == "MEDIUM"

    def test_escalation_passes_priority_through(self):
        assert get_approval_priority(ESCALATION, {"priority": "URGENT"}) == "URGENT"
        assert get_approval_priority(ESCALATION, {"priority": "bogus"}) == "MEDIUM"
        assert get_approval_priority(ESCALATION, {}) == "MEDIUM"


class TestPercentages:

    def test_discount_percentage(self):
        assert discount_percentage(200_000, 40_000) == 20
        assert discount_percentage(0, 100) == 0.0

    def test_price_change_percentage_is_absolute(self):
        assert price_change_percentage(1000, 1200) == pytest.approx(20)
        assert price_change_percentage(1000, 800) == pytest.approx(20)
        assert price_change_percentage(0, 1) == float("inf")
