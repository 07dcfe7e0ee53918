# Overview: Pytest coverage for sales endpoints, approval thresholds, and the end-to-end approval flow.

"""
Sales API tests.

End-to-end scenarios:
A. A sale above the amount threshold is deferred (202) to a PENDING approval.
B. A sale below the threshold by a caller who may commit is created directly (201).
C. Approving a pending SALE_UPDATE applies the stored change to the sale.
"""

from crm.models import ApprovalWorkflow, AuditLog, Sale


def _sale_body(customer, product, **overrides):
    body = {
        "customer_id": customer.id,
        "product_id": product.id,
        "amount_cents": 1_000_000,
        "payment_method": "CARD",
    }
    body.update(overrides)
    return body


class TestSaleCreateScenarios:

    def test_scenario_a_amount_above_threshold_goes_to_approval(
        self, client, db_session, admin_headers, customer_a, product_a
    ):
        response = client.post(
            '/api/sales', json=_sale_body(customer_a, product_a, amount_cents=6_000_000), headers=admin_headers,
        )

        assert response.status_code == 202
        body = response.get_json()
        assert body["success"] is True
        assert body["data"]["status"] == "PENDING_APPROVAL"

        db_session.expire_all()
        approval = db_session.get(ApprovalWorkflow, body["data"]["approval_id"])
        assert approval.status == "PENDING"
        assert approval.action_type == "SALE_CREATE"
        assert approval.priority == "MEDIUM"
        assert approval.request_data["reasons"] == ["amount_threshold"]
        assert approval.request_data["proposed"]["amount_cents"] == 6_000_000
        assert db_session.query(Sale).count() == 0
        assert db_session.query(AuditLog).filter_by(action="SALE_CREATE_APPROVAL_REQUESTED").count() == 1

    def test_approving_deferred_sale_creates_it(
        self, client, db_session, sales_headers, admin_headers, admin_a, sales_a, floor_a, customer_a, product_a
    ):
        response = client.post(
            '/api/sales',
            json=_sale_body(customer_a, product_a, amount_cents=6_000_000, discount_cents=100_000),
            headers=sales_headers,
        )
        assert response.status_code == 202
        approval = response.get_json()["data"]["approval"]
        assert approval["request_data"]["proposed"]["total_amount_cents"] == 5_900_000

        response = client.put(f'/api/approvals/{approval["id"]}', json={"action": "APPROVED"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json()["data"]["status"] == "APPROVED"
        db_session.expire_all()
        sale = db_session.query(Sale).one()
        assert sale.user_id == sales_a.id
        assert sale.floor_id == floor_a.id
        assert sale.total_amount_cents == 5_900_000
        entries = db_session.query(AuditLog).order_by(AuditLog.id).all()
        assert [e.action for e in entries] == [
            "SALE_CREATE_APPROVAL_REQUESTED", "APPROVAL_APPROVED", "SALE_CREATED",
        ]
        assert entries[-1].user_id == admin_a.id
        assert entries[-1].entity_id == sale.id

    def test_urgent_priority_for_very_large_sale(self, client, db_session, admin_headers, customer_a, product_a):
        response = client.post(
            '/api/sales', json=_sale_body(customer_a, product_a, amount_cents=15_000_000), headers=admin_headers,
        )
        assert response.status_code == 202
        assert response.get_json()["data"]["approval"]["priority"] == "URGENT"

    def test_scenario_b_small_sale_is_created_directly(
        self, client, db_session, admin_headers, admin_a, customer_a, product_a
    ):
        response = client.post(
            '/api/sales', json=_sale_body(customer_a, product_a, discount_cents=50_000), headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["amount_cents"] == 1_000_000
        assert data["total_amount_cents"] == 950_000
        assert data["user_id"] == admin_a.id
        assert data["status"] == "COMPLETED"

        db_session.expire_all()
        assert db_session.query(ApprovalWorkflow).count() == 0
        created = db_session.query(AuditLog).filter_by(action="SALE_CREATED").one()
        assert created.entity_id == data["id"]
        assert created.user_id == admin_a.id

    def test_discount_above_threshold_goes_to_approval(self, client, db_session, admin_headers, customer_a, product_a):
        response = client.post(
            '/api/sales', json=_sale_body(customer_a, product_a, discount_cents=200_000), headers=admin_headers,
        )

        assert response.status_code == 202
        approval = response.get_json()["data"]["approval"]
        assert approval["request_data"]["reasons"] == ["discount_threshold"]

    def test_salesperson_small_sale_still_needs_approval(
        self, client, db_session, sales_headers, sales_a, customer_a, product_a
    ):
        response = client.post('/api/sales', json=_sale_body(customer_a, product_a), headers=sales_headers)

        assert response.status_code == 202
        approval = response.get_json()["data"]["approval"]
        assert approval["requester_id"] == sales_a.id
        assert approval["request_data"]["reasons"] == ["requester_cannot_commit"]
        assert approval["request_data"]["proposed"]["floor_id"] == sales_a.floor_id

    def test_missing_required_fields(self, client, db_session, admin_headers, customer_a):
        response = client.post('/api/sales', json={"customer_id": customer_a.id}, headers=admin_headers)
        assert response.status_code == 400
        assert "Missing required fields" in response.get_json()["error"]

    def test_discount_cannot_exceed_amount(self, client, db_session, admin_headers, customer_a, product_a):
        response = client.post(
            '/api/sales', json=_sale_body(customer_a, product_a, discount_cents=2_000_000), headers=admin_headers,
        )
        assert response.status_code == 400

    def test_unknown_customer_is_404(self, client, db_session, admin_headers, product_a):
        response = client.post(
            '/api/sales', json={"customer_id": 999, "product_id": product_a.id, "amount_cents": 100}, headers=admin_headers,
        )
        assert response.status_code == 404

    def test_requires_authentication(self, client, db_session):
        response = client.post('/api/sales', json={})
        assert response.status_code == 401
        assert response.get_json()["success"] is False


class TestSaleUpdateAndApproval:

    def test_scenario_c_approving_sale_update_applies_it(
        self, client, db_session, sales_headers, admin_headers, admin_a, sale_a
    ):
        response = client.put(f'/api/sales/{sale_a.id}', json={"notes": "Engraving added"}, headers=sales_headers)
        assert response.status_code == 202
        approval_id = response.get_json()["data"]["approval_id"]

        response = client.put(
            f'/api/approvals/{approval_id}', json={"action": "APPROVED", "notes": "ok"}, headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["status"] == "APPROVED"
        assert data["approved_at"] is not None
        assert data["approver_id"] == admin_a.id

        db_session.expire_all()
        sale = db_session.get(Sale, sale_a.id)
        assert sale.notes == "Engraving added"
        actions = [a.action for a in db_session.query(AuditLog).order_by(AuditLog.id).all()]
        assert actions == ["SALE_UPDATE_APPROVAL_REQUESTED", "APPROVAL_APPROVED", "SALE_UPDATED"]

    def test_admin_small_update_is_direct(self, client, db_session, admin_headers, sale_a):
        response = client.put(f'/api/sales/{sale_a.id}', json={"payment_method": "upi"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json()["data"]["payment_method"] == "UPI"

    def test_admin_update_raising_amount_over_threshold_needs_approval(
        self, client, db_session, admin_headers, sale_a
    ):
        response = client.put(f'/api/sales/{sale_a.id}', json={"amount_cents": 5_500_000}, headers=admin_headers)

        assert response.status_code == 202
        db_session.expire_all()
        assert db_session.get(Sale, sale_a.id).amount_cents == 2_000_000

    def test_empty_update_is_rejected(self, client, db_session, admin_headers, sale_a):
        response = client.put(f'/api/sales/{sale_a.id}', json={}, headers=admin_headers)
        assert response.status_code == 400


class TestSaleDeleteAndRead:

    def test_admin_deletes_directly(self, client, db_session, admin_headers, sale_a):
        sale_id = sale_a.id
        response = client.delete(f'/api/sales/{sale_id}', headers=admin_headers)

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(Sale, sale_id) is None
        assert db_session.query(AuditLog).filter_by(action="SALE_DELETED", entity_id=sale_id).count() == 1

    def test_salesperson_delete_files_approval(self, client, db_session, sales_headers, admin_headers, sale_a):
        sale_id = sale_a.id
        response = client.delete(f'/api/sales/{sale_id}', headers=sales_headers)
        assert response.status_code == 202
        approval_id = response.get_json()["data"]["approval_id"]

        response = client.put(f'/api/approvals/{approval_id}', json={"action": "APPROVED"}, headers=admin_headers)

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(Sale, sale_id) is None

    def test_list_sales_with_stats_and_filters(self, client, db_session, admin_headers, sale_a, sales_a):
        response = client.get(f'/api/sales?user_id={sales_a.id}&per_page=5', headers=admin_headers)

        assert response.status_code == 200
        body = response.get_json()
        assert [s["id"] for s in body["data"]] == [sale_a.id]
        assert body["pagination"]["per_page"] == 5
        assert body["pagination"]["total"] == 1
        assert body["stats"]["total_revenue_cents"] == 2_000_000

    def test_list_sales_rejects_bad_dates(self, client, db_session, admin_headers):
        response = client.get('/api/sales?start=yesterday', headers=admin_headers)
        assert response.status_code == 400

    def test_get_sale(self, client, db_session, sales_headers, sale_a):
        response = client.get(f'/api/sales/{sale_a.id}', headers=sales_headers)
        assert response.status_code == 200
        assert response.get_json()["data"]["id"] == sale_a.id
