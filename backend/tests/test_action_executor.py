# Overview: Pytest coverage for the dispatch table that applies approved changes.

import pytest

from crm.models import ActionType, Product, User
from crm.services.action_executor import HANDLERS, execute
from crm.services.approval_service import ExecutionError, create_approval_request


def _approval(actor, action_type, **request_data):
    return create_approval_request(actor=actor, action_type=action_type, request_data=request_data)


class TestDispatch:

    def test_every_action_type_has_a_handler(self):
        assert set(HANDLERS) == set(ActionType)

    def test_unknown_action_type_fails(self, db_session, sales_actor, admin_actor):
        approval = _approval(sales_actor, "DISCOUNT_APPLY", entity_id=None, proposed={})
        approval.action_type = "GIFT_WRAP"
        with pytest.raises(ExecutionError, match="Unknown action type"):
            execute(approval, admin_actor)


class TestHandlers:

    def test_discount_apply_is_recorded_only(self, db_session, sales_actor, admin_actor, sale_a):
        approval = _approval(sales_actor, "DISCOUNT_APPLY", entity_id=sale_a.id, proposed={"discount_cents": 1})
        assert execute(approval, admin_actor) is None
        assert sale_a.discount_cents == 0

    def test_product_update_applies_patch(self, db_session, sales_actor, admin_actor, product_a):
        approval = _approval(sales_actor, "PRODUCT_UPDATE", entity_id=product_a.id,
                             proposed={"price_cents": 15_000_000})

        product = execute(approval, admin_actor)

        assert isinstance(product, Product)
        assert product.price_cents == 15_000_000

    def test_floor_assignment_moves_user(self, db_session, sales_actor, admin_actor, sales_a, floor_a2):
        approval = _approval(sales_actor, "FLOOR_ASSIGNMENT", entity_id=sales_a.id,
                             proposed={"floor_id": floor_a2.id})

        user = execute(approval, admin_actor)

        assert isinstance(user, User)
        assert user.floor_id == floor_a2.id

    def test_floor_assignment_requires_floor_id(self, db_session, sales_actor, admin_actor, sales_a):
        approval = _approval(sales_actor, "FLOOR_ASSIGNMENT", entity_id=sales_a.id, proposed={})
        with pytest.raises(ExecutionError, match="floor_id is required"):
            execute(approval, admin_actor)

    def test_missing_entity_id(self, db_session, sales_actor, admin_actor):
        approval = _approval(sales_actor, "PRODUCT_UPDATE", entity_id=None, proposed={"price_cents": 1})
        with pytest.raises(ExecutionError, match="entity_id is required"):
            execute(approval, admin_actor)

    def test_target_in_other_store_is_not_found(self, db_session, sales_actor, admin_actor, product_b):
        approval = _approval(sales_actor, "PRODUCT_UPDATE", entity_id=product_b.id, proposed={"price_cents": 1})
        with pytest.raises(ExecutionError, match="Product not found"):
            execute(approval, admin_actor)

    def test_stale_proposal_fails_validation(self, db_session, sales_actor, admin_actor, customer_a):
        approval = _approval(sales_actor, "CUSTOMER_UPDATE", entity_id=customer_a.id,
                             proposed={"customer_value": "PLATINUM"})
        with pytest.raises(ExecutionError, match="customer_value must be one of"):
            execute(approval, admin_actor)
