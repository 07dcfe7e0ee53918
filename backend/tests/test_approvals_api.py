# Overview: Pytest coverage for approval endpoints; listing, manual requests, and resolution over HTTP.

from crm.models import ApprovalWorkflow, AuditLog, User
from crm.services.approval_service import create_approval_request


def _pending(actor, action_type="DISCOUNT_APPLY", request_data=None):
    return create_approval_request(actor=actor, action_type=action_type, request_data=request_data or {})


class TestListAndGet:

    def test_admin_sees_all_approvals(self, client, db_session, admin_headers, sales_actor, admin_actor):
        _pending(sales_actor)
        _pending(admin_actor)

        response = client.get('/api/approvals', headers=admin_headers)

        assert response.status_code == 200
        body = response.get_json()
        assert len(body["data"]) == 2
        assert body["pagination"]["total"] == 2

    def test_staff_see_only_their_own(self, client, db_session, sales_headers, sales_actor, admin_actor):
        mine = _pending(sales_actor)
        _pending(admin_actor)

        response = client.get('/api/approvals', headers=sales_headers)

        assert [a["id"] for a in response.get_json()["data"]] == [mine.id]

    def test_status_filter(self, client, db_session, admin_headers, admin_a, sales_actor):
        _pending(sales_actor)
        rejected = _pending(sales_actor)
        client.put(f'/api/approvals/{rejected.id}', json={"action": "REJECTED"}, headers=admin_headers)

        response = client.get('/api/approvals?status=REJECTED', headers=admin_headers)

        assert [a["id"] for a in response.get_json()["data"]] == [rejected.id]

    def test_staff_cannot_open_someone_elses_approval(self, client, db_session, sales_headers, admin_actor):
        other = _pending(admin_actor)
        response = client.get(f'/api/approvals/{other.id}', headers=sales_headers)
        assert response.status_code == 404

    def test_get_returns_request_data_unchanged(self, client, db_session, admin_headers, sales_actor):
        payload = {"entity_id": 3, "previous": {"a": 1}, "proposed": {"b": [1, 2, 3]}, "reasons": ["x"]}
        approval = _pending(sales_actor, "SALE_UPDATE", payload)

        response = client.get(f'/api/approvals/{approval.id}', headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json()["data"]["request_data"] == payload

    def test_other_tenant_gets_404(self, client, db_session, admin_b_headers, sales_actor):
        approval = _pending(sales_actor)
        response = client.get(f'/api/approvals/{approval.id}', headers=admin_b_headers)
        assert response.status_code == 404


class TestManualRequest:

    def test_salesperson_files_floor_assignment(self, client, db_session, sales_headers, sales_a, floor_a2):
        response = client.post('/api/approvals', json={
            "action_type": "FLOOR_ASSIGNMENT",
            "request_data": {"entity_id": sales_a.id, "proposed": {"floor_id": floor_a2.id}},
            "notes": "Moving to diamonds",
        }, headers=sales_headers)

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["status"] == "PENDING"
        assert data["priority"] == "MEDIUM"
        assert data["approval_notes"] == "Moving to diamonds"

    def test_request_data_must_be_object(self, client, db_session, sales_headers):
        response = client.post('/api/approvals', json={"action_type": "SALE_CREATE", "request_data": "x"},
                               headers=sales_headers)
        assert response.status_code == 400

    def test_unknown_action_type(self, client, db_session, sales_headers):
        response = client.post('/api/approvals', json={"action_type": "REFUND", "request_data": {}},
                               headers=sales_headers)
        assert response.status_code == 400


class TestResolve:

    def test_approve_floor_assignment_moves_user(self, client, db_session, admin_headers, sales_actor, sales_a, floor_a2):
        approval = _pending(sales_actor, "FLOOR_ASSIGNMENT", {"entity_id": sales_a.id, "proposed": {"floor_id": floor_a2.id}})

        response = client.put(f'/api/approvals/{approval.id}', json={"action": "approved"}, headers=admin_headers)

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(User, sales_a.id).floor_id == floor_a2.id
        assert db_session.query(AuditLog).filter_by(action="USER_FLOOR_ASSIGNED").count() == 1

    def test_salesperson_cannot_resolve(self, client, db_session, sales_headers, sales_actor):
        approval = _pending(sales_actor)
        response = client.put(f'/api/approvals/{approval.id}', json={"action": "APPROVED"}, headers=sales_headers)

        assert response.status_code == 403
        db_session.expire_all()
        assert db_session.get(ApprovalWorkflow, approval.id).status == "PENDING"

    def test_double_resolution_is_rejected(self, client, db_session, admin_headers, sales_actor):
        approval = _pending(sales_actor)
        first = client.put(f'/api/approvals/{approval.id}', json={"action": "REJECTED"}, headers=admin_headers)
        second = client.put(f'/api/approvals/{approval.id}', json={"action": "APPROVED"}, headers=admin_headers)

        assert first.status_code == 200
        assert second.status_code == 400
        assert "not in pending status" in second.get_json()["error"]

    def test_missing_approval_is_404(self, client, db_session, admin_headers):
        response = client.put('/api/approvals/4040', json={"action": "APPROVED"}, headers=admin_headers)
        assert response.status_code == 404

    def test_invalid_action(self, client, db_session, admin_headers, sales_actor):
        approval = _pending(sales_actor)
        response = client.put(f'/api/approvals/{approval.id}', json={"action": "MAYBE"}, headers=admin_headers)
        assert response.status_code == 400

    def test_missing_action(self, client, db_session, admin_headers, sales_actor):
        approval = _pending(sales_actor)
        response = client.put(f'/api/approvals/{approval.id}', json={}, headers=admin_headers)
        assert response.status_code == 400

    def test_execution_failure_answers_409(self, client, db_session, admin_headers, sales_actor):
        approval = _pending(sales_actor, "SALE_DELETE", {"entity_id": 31337, "proposed": None})

        response = client.put(f'/api/approvals/{approval.id}', json={"action": "APPROVED"}, headers=admin_headers)

        assert response.status_code == 409
        body = response.get_json()
        assert body["success"] is False
        assert body["data"]["status"] == "EXECUTION_FAILED"
        assert body["data"]["execution_error"] == "Sale not found"

    def test_malformed_entity_id_marks_execution_failed(self, client, db_session, sales_headers, admin_headers):
        response = client.post('/api/approvals', json={
            "action_type": "PRODUCT_UPDATE",
            "request_data": {"entity_id": [1, 2], "proposed": {"price_cents": 1}},
        }, headers=sales_headers)
        assert response.status_code == 201
        approval_id = response.get_json()["data"]["id"]

        response = client.put(f'/api/approvals/{approval_id}', json={"action": "APPROVED"}, headers=admin_headers)

        assert response.status_code == 409
        assert response.get_json()["data"]["execution_error"] == "Product id must be an integer"
        db_session.expire_all()
        assert db_session.get(ApprovalWorkflow, approval_id).status == "EXECUTION_FAILED"
        assert db_session.query(AuditLog).filter_by(action="APPROVAL_EXECUTION_FAILED").count() == 1
