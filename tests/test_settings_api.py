def test_defaults_without_saved_settings(client, headers):
    r = client.get("/api/settings", headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["shop_name"] == "Mi Taller"
    assert body["print_format"] == "a4"
    assert len(body["checklist_options"]) == 9


def test_upsert_settings(client, headers):
    r = client.post("/api/settings", json={"shop_name": "Cell Fix", "card_surcharge": 12.5, "print_format": "ticket"}, headers=headers)
    assert r.status_code == 200
    first_id = r.json()["id"]

    r = client.post("/api/settings", json={"transfer_surcharge": 3}, headers=headers)
    assert r.json()["id"] == first_id
    body = client.get("/api/settings", headers=headers).json()
    assert body["shop_name"] == "Cell Fix"
    assert body["card_surcharge"] == 12.5
    assert body["transfer_surcharge"] == 3
    assert body["print_format"] == "ticket"


def test_checklist_limit(client, headers):
    r = client.post("/api/settings", json={"checklist_options": [f"¿P{i}?" for i in range(13)]}, headers=headers)
    assert r.status_code == 400
    r = client.post("/api/settings", json={"checklist_options": ["¿Carga?", "  ", "¿Enciende?"]}, headers=headers)
    assert r.json()["checklist_options"] == ["¿Carga?", "¿Enciende?"]


def test_invalid_print_format(client, headers):
    assert client.post("/api/settings", json={"print_format": "carta"}, headers=headers).status_code == 400


def test_guest_cannot_save_settings(client):
    assert client.post("/api/settings", json={"shop_name": "X"}).status_code == 401


def test_expenses(client, headers):
    r = client.post("/api/expenses", json={"amount": 30, "description": "Estaño", "category": "Insumos"}, headers=headers)
    assert r.status_code == 201
    assert r.json()["date"]
    r = client.post(
        "/api/expenses",
        json={"amount": 12, "description": "Luz", "category": "Servicios", "date": "2026-01-05T10:00:00Z"},
        headers=headers,
    )
    assert r.status_code == 201
    listed = client.get("/api/expenses", headers=headers).json()
    assert [e["description"] for e in listed] == ["Estaño", "Luz"]


def test_expense_amount_must_be_positive(client, headers):
    r = client.post("/api/expenses", json={"amount": 0, "description": "x", "category": "y"}, headers=headers)
    assert r.status_code == 400
