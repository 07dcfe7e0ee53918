# Overview: Pytest coverage for product and category endpoints, including price-change approvals.

from crm.models import AuditLog, Product


class TestProducts:

    def test_create_product(self, client, db_session, admin_headers, category_a):
        response = client.post('/api/products', json={
            "sku": "NECK-DIA-01",
            "name": "Diamond Necklace",
            "price_cents": 45_000_000,
            "category_id": category_a.id,
            "weight_grams": 18.5,
            "gemstone": "Diamond",
            "images": ["https://cdn.example/neck.jpg"],
        }, headers=admin_headers)

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["sku"] == "NECK-DIA-01"
        assert data["weight_grams"] == 18.5
        assert data["images"] == ["https://cdn.example/neck.jpg"]

    def test_duplicate_sku_conflicts(self, client, db_session, admin_headers, product_a):
        response = client.post('/api/products', json={"sku": product_a.sku, "name": "Copy", "price_cents": 1},
                               headers=admin_headers)
        assert response.status_code == 409

    def test_same_sku_allowed_in_other_store(self, client, db_session, admin_b_headers, product_a):
        response = client.post('/api/products', json={"sku": product_a.sku, "name": "Other", "price_cents": 1},
                               headers=admin_b_headers)
        assert response.status_code == 201

    def test_salesperson_cannot_create(self, client, db_session, sales_headers):
        response = client.post('/api/products', json={"sku": "X", "name": "X", "price_cents": 1},
                               headers=sales_headers)
        assert response.status_code == 403

    def test_small_price_change_is_direct(self, client, db_session, admin_headers, product_a):
        response = client.put(f'/api/products/{product_a.id}', json={"price_cents": 10_500_000},
                              headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json()["data"]["price_cents"] == 10_500_000

    def test_large_price_change_needs_approval_then_applies(self, client, db_session, admin_headers, product_a):
        response = client.put(f'/api/products/{product_a.id}', json={"price_cents": 12_000_000},
                              headers=admin_headers)
        assert response.status_code == 202
        approval = response.get_json()["data"]["approval"]
        assert approval["action_type"] == "PRODUCT_UPDATE"
        assert approval["request_data"]["previous"]["price_cents"] == 10_000_000

        db_session.expire_all()
        assert db_session.get(Product, product_a.id).price_cents == 10_000_000

        response = client.put(f'/api/approvals/{approval["id"]}', json={"action": "APPROVED"}, headers=admin_headers)

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(Product, product_a.id).price_cents == 12_000_000
        assert db_session.query(AuditLog).filter_by(action="PRODUCT_UPDATED").count() == 1

    def test_list_low_stock_and_stats(self, client, db_session, sales_headers, product_a, store_a):
        db_session.add(Product(store_id=store_a.id, sku="LOW-1", name="Low", price_cents=100,
                               stock_quantity=1, min_stock_level=3))
        db_session.commit()

        response = client.get('/api/products?status=LOW_STOCK', headers=sales_headers)

        body = response.get_json()
        assert response.status_code == 200
        assert [p["sku"] for p in body["data"]] == ["LOW-1"]
        assert body["stats"]["total"] == 2
        assert body["stats"]["low_stock"] == 1

    def test_list_invalid_status(self, client, db_session, admin_headers):
        response = client.get('/api/products?status=SOLD', headers=admin_headers)
        assert response.status_code == 400

    def test_delete_refused_with_sales(self, client, db_session, admin_headers, sale_a, product_a):
        response = client.delete(f'/api/products/{product_a.id}', headers=admin_headers)
        assert response.status_code == 409


class TestCategories:

    def test_list_with_product_counts(self, client, db_session, sales_headers, product_a, category_a):
        response = client.get('/api/categories', headers=sales_headers)

        assert response.status_code == 200
        [row] = response.get_json()["data"]
        assert row["name"] == "Rings"
        assert row["product_count"] == 1

    def test_create_child_category(self, client, db_session, admin_headers, category_a):
        response = client.post('/api/categories', json={"name": "Solitaire Rings", "parent_id": category_a.id},
                               headers=admin_headers)

        assert response.status_code == 201
        assert response.get_json()["data"]["parent_id"] == category_a.id

    def test_duplicate_category(self, client, db_session, admin_headers, category_a):
        response = client.post('/api/categories', json={"name": "Rings"}, headers=admin_headers)
        assert response.status_code == 409
