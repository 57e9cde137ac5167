def test_product_crud(client, headers):
    r = client.post("/api/products", json={"name": "Batería", "sku": "BAT-1", "price": 20, "cost": 8, "quantity": 4}, headers=headers)
    assert r.status_code == 201
    pid = r.json()["id"]
    assert r.json()["category"] == "General"
    assert r.json()["low_stock_threshold"] == 5

    r = client.patch(f"/api/products/{pid}", json={"price": 25}, headers=headers)
    assert r.status_code == 200
    assert r.json()["price"] == 25
    assert r.json()["sku"] == "BAT-1"

    assert client.delete(f"/api/products/{pid}", headers=headers).status_code == 204
    assert client.get(f"/api/products/{pid}", headers=headers).status_code == 404


def test_restock_and_low_stock_filter(client, headers):
    low = client.post("/api/products", json={"name": "Pin de carga", "price": 3, "quantity": 2}, headers=headers).json()
    client.post("/api/products", json={"name": "Templado", "price": 5, "quantity": 50}, headers=headers)

    names = [p["name"] for p in client.get("/api/products", params={"low_stock": True}, headers=headers).json()]
    assert names == ["Pin de carga"]

    r = client.post(f"/api/products/{low['id']}/restock", json={"quantity": 10}, headers=headers)
    assert r.status_code == 200
    assert r.json()["quantity"] == 12
    assert client.get("/api/products", params={"low_stock": True}, headers=headers).json() == []


def test_restock_requires_positive_quantity(client, headers):
    p = client.post("/api/products", json={"name": "X", "price": 1}, headers=headers).json()
    assert client.post(f"/api/products/{p['id']}/restock", json={"quantity": 0}, headers=headers).status_code == 400


def test_product_of_other_tenant_not_visible(client, headers, other_headers):
    p = client.post("/api/products", json={"name": "X", "price": 1}, headers=headers).json()
    assert client.delete(f"/api/products/{p['id']}", headers=other_headers).status_code == 404


def test_negative_price_rejected(client, headers):
    assert client.post("/api/products", json={"name": "X", "price": -1}, headers=headers).status_code == 400
