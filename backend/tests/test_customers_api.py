# Overview: Pytest coverage for customer endpoints and high-value approval routing.

from crm.models import ApprovalWorkflow, AuditLog, Customer


class TestCustomerCreate:

    def test_admin_creates_directly(self, client, db_session, admin_headers, floor_a):
        response = client.post('/api/customers', json={
            "name": "Anjali Rao",
            "phone": "9811111111",
            "email": "Anjali@Example.com",
            "gender": "female",
            "date_of_birth": "1990-04-12",
            "floor_id": floor_a.id,
        }, headers=admin_headers)

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["email"] == "anjali@example.com"
        assert data["gender"] == "FEMALE"
        assert data["date_of_birth"] == "1990-04-12"
        assert data["customer_value"] == "REGULAR"
        db_session.expire_all()
        assert db_session.query(AuditLog).filter_by(action="CUSTOMER_CREATED", entity_id=data["id"]).count() == 1

    def test_salesperson_create_is_deferred_and_approval_creates_it(
        self, client, db_session, sales_headers, admin_headers
    ):
        response = client.post('/api/customers', json={
            "name": "Kiran Desai", "phone": "9822222222", "date_of_birth": "1985-01-30",
        }, headers=sales_headers)
        assert response.status_code == 202
        approval_id = response.get_json()["data"]["approval_id"]
        db_session.expire_all()
        assert db_session.query(Customer).count() == 0

        response = client.put(f'/api/approvals/{approval_id}', json={"action": "APPROVED"}, headers=admin_headers)

        assert response.status_code == 200
        db_session.expire_all()
        customer = db_session.query(Customer).filter_by(phone="9822222222").one()
        assert customer.date_of_birth.isoformat() == "1985-01-30"

    def test_duplicate_phone_conflicts(self, client, db_session, admin_headers, customer_a):
        response = client.post('/api/customers', json={"name": "Copy", "phone": customer_a.phone},
                               headers=admin_headers)
        assert response.status_code == 409

    def test_unknown_field_rejected(self, client, db_session, admin_headers):
        response = client.post('/api/customers', json={"name": "X", "phone": "1", "store_id": 2},
                               headers=admin_headers)
        assert response.status_code == 400
        assert "Field not allowed" in response.get_json()["error"]

    def test_invalid_customer_value(self, client, db_session, admin_headers):
        response = client.post('/api/customers', json={"name": "X", "phone": "1", "customer_value": "VIP"},
                               headers=admin_headers)
        assert response.status_code == 400


class TestCustomerUpdate:

    def test_admin_updates_regular_customer_directly(self, client, db_session, admin_headers, customer_a):
        response = client.put(f'/api/customers/{customer_a.id}', json={"city": "Jaipur"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json()["data"]["city"] == "Jaipur"

    def test_high_value_customer_update_needs_approval_even_for_admin(
        self, client, db_session, admin_headers, vip_customer_a
    ):
        response = client.put(f'/api/customers/{vip_customer_a.id}', json={"city": "Surat"}, headers=admin_headers)

        assert response.status_code == 202
        approval_id = response.get_json()["data"]["approval_id"]
        db_session.expire_all()
        approval = db_session.get(ApprovalWorkflow, approval_id)
        assert approval.action_type == "CUSTOMER_UPDATE"
        assert approval.request_data["reasons"] == ["high_value_customer"]
        assert approval.request_data["previous"]["city"] is None
        assert db_session.get(Customer, vip_customer_a.id).city is None

    def test_promoting_to_high_value_needs_approval(self, client, db_session, admin_headers, customer_a):
        response = client.put(f'/api/customers/{customer_a.id}', json={"customer_value": "HIGH_VALUE"},
                              headers=admin_headers)
        assert response.status_code == 202

    def test_salesperson_update_is_deferred(self, client, db_session, sales_headers, customer_a):
        response = client.put(f'/api/customers/{customer_a.id}', json={"notes": "Prefers rose gold"},
                              headers=sales_headers)
        assert response.status_code == 202
        reasons = response.get_json()["data"]["approval"]["request_data"]["reasons"]
        assert reasons == ["requester_cannot_commit"]


class TestCustomerReadDelete:

    def test_list_with_search_and_stats(self, client, db_session, sales_headers, customer_a, vip_customer_a):
        response = client.get('/api/customers?search=Priya', headers=sales_headers)

        assert response.status_code == 200
        body = response.get_json()
        assert [c["id"] for c in body["data"]] == [customer_a.id]
        assert body["stats"]["total"] == 2
        assert body["stats"]["high_value"] == 1

    def test_list_filter_by_value(self, client, db_session, admin_headers, customer_a, vip_customer_a):
        response = client.get('/api/customers?customer_value=high_value', headers=admin_headers)
        assert [c["id"] for c in response.get_json()["data"]] == [vip_customer_a.id]

    def test_delete_refused_with_sales(self, client, db_session, admin_headers, sale_a, customer_a):
        response = client.delete(f'/api/customers/{customer_a.id}', headers=admin_headers)
        assert response.status_code == 409

    def test_delete(self, client, db_session, admin_headers, vip_customer_a):
        customer_id = vip_customer_a.id
        response = client.delete(f'/api/customers/{customer_id}', headers=admin_headers)

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(Customer, customer_id) is None
        assert db_session.query(AuditLog).filter_by(action="CUSTOMER_DELETED").count() == 1

    def test_salesperson_cannot_delete(self, client, db_session, sales_headers, customer_a):
        response = client.delete(f'/api/customers/{customer_a.id}', headers=sales_headers)
        assert response.status_code == 403
