# Overview: Pytest coverage for role-scoped analytics reports.

import pytest

from crm.models import Sale, User
from crm.services.session_service import create_session


@pytest.fixture
def floor_two_sale(db_session, store_a, floor_a2, customer_a, product_a, admin_a):
    sale = Sale(
        store_id=store_a.id,
        floor_id=floor_a2.id,
        customer_id=customer_a.id,
        product_id=product_a.id,
        user_id=admin_a.id,
        quantity=2,
        amount_cents=3_000_000,
        discount_cents=0,
        total_amount_cents=3_000_000,
        payment_method="UPI",
        status="COMPLETED",
    )
    db_session.add(sale)
    db_session.commit()
    return sale


class TestAnalyticsScope:

    def test_admin_dashboard_covers_store(self, client, db_session, admin_headers, sale_a, floor_two_sale):
        response = client.get('/api/analytics', headers=admin_headers)

        assert response.status_code == 200
        body = response.get_json()
        assert body["type"] == "dashboard"
        assert body["data"]["total_sales_cents"] == 5_000_000
        assert body["data"]["sales_count"] == 2
        assert body["data"]["total_products"] == 1
        assert len(body["data"]["recent_sales"]) == 2

    def test_admin_may_filter_floor(self, client, db_session, admin_headers, sale_a, floor_two_sale, floor_a2):
        response = client.get(f'/api/analytics?floor_id={floor_a2.id}', headers=admin_headers)
        assert response.get_json()["data"]["total_sales_cents"] == 3_000_000

    def test_floor_manager_pinned_to_own_floor(
        self, client, db_session, manager_headers, sale_a, floor_two_sale, floor_a2
    ):
        response = client.get(f'/api/analytics?floor_id={floor_a2.id}', headers=manager_headers)

        assert response.status_code == 200
        assert response.get_json()["data"]["total_sales_cents"] == 2_000_000

    def test_salesperson_pinned_to_own_sales(self, client, db_session, sales_headers, sale_a, floor_two_sale):
        response = client.get('/api/analytics?type=sales', headers=sales_headers)

        body = response.get_json()
        assert body["type"] == "sales"
        assert body["data"]["sales_stats"]["count"] == 1
        assert body["data"]["sales_stats"]["revenue_cents"] == 2_000_000

    def test_manager_without_floor_refused(self, client, db_session, store_a):
        manager = User(store_id=store_a.id, name="Roaming", email="roaming@zaveri.test",
                       password_hash="x", role="FLOOR_MANAGER")
        db_session.add(manager)
        db_session.commit()
        _, token = create_session(user_id=manager.id)

        response = client.get('/api/analytics', headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 403


class TestReports:

    def test_sales_report_breakdowns(self, client, db_session, admin_headers, sale_a, floor_two_sale, product_a):
        data = client.get('/api/analytics?type=sales', headers=admin_headers).get_json()["data"]

        assert data["sales_stats"]["quantity"] == 3
        assert data["sales_stats"]["average_sale_cents"] == 2_500_000
        assert {row["payment_method"] for row in data["sales_by_payment_method"]} == {"CARD", "UPI"}
        assert data["top_products"][0]["product_id"] == product_a.id

    def test_customer_report(self, client, db_session, admin_headers, sale_a, vip_customer_a, customer_a):
        data = client.get('/api/analytics?type=customers', headers=admin_headers).get_json()["data"]

        assert data["customer_stats"] == {"total": 2, "high_value": 1}
        assert data["top_customers"][0]["customer_id"] == customer_a.id

    def test_product_report_lists_low_stock(self, client, db_session, admin_headers, product_a):
        product_a.stock_quantity = 1
        db_session.commit()

        data = client.get('/api/analytics?type=products', headers=admin_headers).get_json()["data"]

        assert [p["id"] for p in data["low_stock_products"]] == [product_a.id]
        assert data["products_by_category"][0]["category"] == "Rings"

    def test_unknown_type_falls_back_to_dashboard(self, client, db_session, admin_headers):
        body = client.get('/api/analytics?type=forecast', headers=admin_headers).get_json()
        assert body["type"] == "dashboard"
        assert "total_sales_cents" in body["data"]

    def test_invalid_range(self, client, db_session, admin_headers):
        response = client.get('/api/analytics?start=yesterday', headers=admin_headers)
        assert response.status_code == 400
