# Overview: Pytest coverage for floors and staff management endpoints.

from crm.models import AuditLog


class TestFloors:

    def test_list_with_rollups(self, client, db_session, sales_headers, sale_a, floor_a, floor_a2):
        response = client.get('/api/floors', headers=sales_headers)

        assert response.status_code == 200
        rows = {row["id"]: row for row in response.get_json()["data"]}
        assert rows[floor_a.id]["staff_count"] == 1
        assert rows[floor_a.id]["customer_count"] == 1
        assert rows[floor_a.id]["revenue_cents"] == 2_000_000
        assert rows[floor_a2.id]["sales_count"] == 0

    def test_create_floor(self, client, db_session, admin_headers, floor_a):
        response = client.post('/api/floors', json={"name": "Bridal", "number": 2}, headers=admin_headers)

        assert response.status_code == 201
        assert response.get_json()["data"]["number"] == 2

    def test_duplicate_floor_number(self, client, db_session, admin_headers, floor_a):
        response = client.post('/api/floors', json={"name": "Again", "number": 0}, headers=admin_headers)
        assert response.status_code == 409

    def test_salesperson_cannot_create_floor(self, client, db_session, sales_headers):
        response = client.post('/api/floors', json={"name": "X", "number": 5}, headers=sales_headers)
        assert response.status_code == 403


class TestUsers:

    def test_list_filters_by_role(self, client, db_session, admin_headers, sales_a, manager_a):
        response = client.get('/api/users?role=SALESPERSON', headers=admin_headers)

        assert response.status_code == 200
        assert [u["id"] for u in response.get_json()["data"]] == [sales_a.id]

    def test_create_staff_user(self, client, db_session, admin_headers, floor_a):
        response = client.post('/api/users', json={
            "name": "New Hire",
            "email": "Hire@Zaveri.test",
            "password": "Password123!",
            "role": "salesperson",
            "floor_id": floor_a.id,
        }, headers=admin_headers)

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["email"] == "hire@zaveri.test"
        assert data["role"] == "SALESPERSON"
        assert "password_hash" not in data
        db_session.expire_all()
        assert db_session.query(AuditLog).filter_by(action="USER_CREATED").count() == 1

    def test_weak_password_rejected(self, client, db_session, admin_headers):
        response = client.post('/api/users', json={"name": "W", "email": "w@zaveri.test", "password": "weak"},
                               headers=admin_headers)
        assert response.status_code == 400

    def test_unknown_role_rejected(self, client, db_session, admin_headers):
        response = client.post('/api/users', json={
            "name": "W", "email": "w@zaveri.test", "password": "Password123!", "role": "OWNER",
        }, headers=admin_headers)
        assert response.status_code == 400

    def test_duplicate_email(self, client, db_session, admin_headers, sales_a):
        response = client.post('/api/users', json={
            "name": "Dup", "email": sales_a.email, "password": "Password123!",
        }, headers=admin_headers)
        assert response.status_code == 409

    def test_assign_floor(self, client, db_session, admin_headers, sales_a, floor_a2):
        response = client.put(f'/api/users/{sales_a.id}/floor', json={"floor_id": floor_a2.id},
                              headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json()["data"]["floor_id"] == floor_a2.id

    def test_assign_floor_requires_key(self, client, db_session, admin_headers, sales_a):
        response = client.put(f'/api/users/{sales_a.id}/floor', json={}, headers=admin_headers)
        assert response.status_code == 400

    def test_assign_floor_rejects_non_integer_id(self, client, db_session, admin_headers, sales_a):
        response = client.put(f'/api/users/{sales_a.id}/floor', json={"floor_id": {"a": 1}}, headers=admin_headers)
        assert response.status_code == 400
        assert response.get_json()["error"] == "Floor id must be an integer"

    def test_salesperson_cannot_manage_team(self, client, db_session, sales_headers, sales_a, floor_a2):
        response = client.put(f'/api/users/{sales_a.id}/floor', json={"floor_id": floor_a2.id},
                              headers=sales_headers)
        assert response.status_code == 403
