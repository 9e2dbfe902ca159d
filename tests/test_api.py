from modules.orders.router import XLSX_MEDIA_TYPE


def create_tooling(client, **fields):
    payload = {"inventory_number": "AUTO002", "project_name": "Press line retrofit", "recorder": "J. Lee"}
    payload.update(fields)
    response = client.post("/tooling", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


def create_material_with_prices(client, name="Q235", prices=()):
    material = client.post("/materials", json={"name": name, "density": 7850}).json()
    for unit_price, start, end in prices:
        response = client.post(
            f"/materials/{material['id']}/prices",
            json={"unit_price": unit_price, "effective_start_date": start, "effective_end_date": end},
        )
        assert response.status_code == 200, response.text
    return material


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_cutting_order_reconcile_round(client):
    tooling = create_tooling(client)
    batch = {
        "orders": [
            {"tooling_id": tooling["id"], "part_drawing_number": "D-1", "material_source": "saw", "part_quantity": 1},
            {"tooling_id": tooling["id"], "part_drawing_number": "D-2", "material_source": "saw", "part_quantity": 2},
        ]
    }

    first = client.post("/cutting-orders", json=batch)
    second = client.post("/cutting-orders", json=batch)

    assert first.status_code == 200
    assert first.json()["stats"] == {"inserted": 2, "updated": 0, "skipped": 0}
    assert second.json()["stats"] == {"inserted": 0, "updated": 0, "skipped": 2}
    listed = client.get("/cutting-orders", params={"tooling_id": tooling["id"]}).json()
    assert [o["part_drawing_number"] for o in listed] == ["D-1", "D-2"]
    assert listed[0]["project_name"] == "Press line retrofit"


def test_unkeyable_candidate_rejects_batch(client):
    tooling = create_tooling(client)
    response = client.post(
        "/cutting-orders",
        json={
            "orders": [
                {"tooling_id": tooling["id"], "part_drawing_number": "D-1", "material_source": "saw"},
                {"part_name": "No identity"},
            ]
        },
    )
    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "invalid_candidate"
    assert body["message"].startswith("Order #2")
    assert client.get("/cutting-orders").json() == []


def test_empty_batch_is_a_validation_error(client):
    response = client.post("/cutting-orders", json={"orders": []})
    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


def test_unknown_tooling_returns_404(client):
    response = client.post(
        "/cutting-orders",
        json={"orders": [{"tooling_id": 999, "part_drawing_number": "D-1", "material_source": "saw"}]},
    )
    assert response.status_code == 404
    assert response.json() == {"message": "Tooling not found: 999", "code": "not_found"}


def test_purchase_orders_with_governing_tooling_and_status(client):
    tooling = create_tooling(client, production_unit="Workshop 2")
    response = client.post(
        "/purchase-orders",
        json={
            "tooling_id": tooling["id"],
            "orders": [{"part_name": "Bolt M8", "part_quantity": 20, "required_date": "2026-01-10"}],
        },
    )
    assert response.status_code == 200, response.text
    order = response.json()["data"][0]
    assert order["production_unit"] == "Workshop 2"
    assert order["applicant"] == "J. Lee"
    assert order["demand_date"] == "2026-01-10"
    assert order["status"] == "pending"

    updated = client.put(f"/purchase-orders/{order['id']}/status", json={"status": "ordered"})
    assert updated.json()["status"] == "ordered"
    assert client.put(f"/purchase-orders/{order['id']}/status", json={"status": "lost"}).status_code == 422

    again = client.post(
        "/purchase-orders",
        json={"tooling_id": tooling["id"], "orders": [{"part_name": "Bolt M8", "part_quantity": 25}]},
    ).json()
    assert again["stats"]["updated"] == 1
    assert again["data"][0]["id"] == order["id"]
    assert again["data"][0]["status"] == "ordered"

    assert client.get("/purchase-orders", params={"status": "ordered"}).json()[0]["id"] == order["id"]
    assert client.post("/purchase-orders/batch-delete", json={"ids": [order["id"], 999]}).json() == {"deleted": 1}


def test_part_codes_endpoint(client):
    tooling = create_tooling(client)
    first = client.post(f"/tooling/{tooling['id']}/part-codes", json={})
    explicit = client.post(f"/tooling/{tooling['id']}/part-codes", json={"explicit_code": "SPARE-1"})
    assert first.json() == {"part_inventory_number": "AUTO00201"}
    assert explicit.json() == {"part_inventory_number": "SPARE-1"}
    assert client.post("/tooling/999/part-codes", json={}).status_code == 404


def test_parts_receive_codes_and_deleted_numbers_stay_retired(client):
    tooling = create_tooling(client)
    parts = [client.post(f"/tooling/{tooling['id']}/parts", json={"part_name": f"P{i}"}).json() for i in range(3)]
    assert client.delete(f"/tooling/parts/{parts[1]['id']}").status_code == 204
    fourth = client.post(f"/tooling/{tooling['id']}/parts", json={"part_name": "P3"}).json()
    assert fourth["part_inventory_number"] == "AUTO00204"
    assert client.get(f"/tooling/{tooling['id']}").json()["part_count"] == 3


def test_tooling_delete_requires_cascade(client):
    tooling = create_tooling(client)
    client.post(f"/tooling/{tooling['id']}/parts", json={"part_name": "Base"})
    client.post(f"/tooling/{tooling['id']}/child-items", json={"name": "Bolt M8", "quantity": 4})

    refused = client.delete(f"/tooling/{tooling['id']}")
    assert refused.status_code == 422
    assert refused.json()["code"] == "validation_error"

    deleted = client.delete(f"/tooling/{tooling['id']}", params={"cascade": True})
    assert deleted.json() == {"deleted": 1, "parts_deleted": 1, "child_items_deleted": 1}
    assert client.get(f"/tooling/{tooling['id']}").status_code == 404


def test_duplicate_tooling_code_conflicts(client):
    create_tooling(client)
    response = client.post("/tooling", json={"inventory_number": "AUTO002"})
    assert response.status_code == 409
    assert response.json()["code"] == "constraint_violation"


def test_price_history_resolution(client):
    material = create_material_with_prices(
        client,
        prices=[
            (22.6, "2025-11-24", "2025-12-31"),
            (25.5, "2025-12-01", "2025-12-31"),
            (28, "2026-01-01", "2026-01-31"),
            (30, "2026-02-01", None),
        ],
    )
    url = f"/materials/{material['id']}/price"
    assert client.get(url, params={"as_of": "2025-11-20"}).json()["unit_price"] == 0
    assert client.get(url, params={"as_of": "2025-12-15"}).json()["unit_price"] == 22.6
    assert client.get(url, params={"as_of": "2026-01-15"}).json()["unit_price"] == 28
    assert client.get(url).json()["unit_price"] == 30


def test_new_price_closes_open_ended_one(client):
    material = create_material_with_prices(client, prices=[(10, "2025-01-01", None), (12, "2025-03-01", None)])
    prices = client.get(f"/materials/{material['id']}/prices").json()
    assert prices[0]["effective_end_date"] == "2025-02-28"
    assert prices[1]["effective_end_date"] is None

    duplicate = client.post(
        f"/materials/{material['id']}/prices", json={"unit_price": 13, "effective_start_date": "2025-03-01"}
    )
    assert duplicate.status_code == 409
    backwards = client.post(
        f"/materials/{material['id']}/prices",
        json={"unit_price": 13, "effective_start_date": "2025-06-01", "effective_end_date": "2025-05-01"},
    )
    assert backwards.status_code == 422


def test_generate_orders_for_tooling(client):
    tooling = create_tooling(client, received_date="2025-12-15")
    material = create_material_with_prices(
        client, prices=[(22.6, "2025-11-24", "2025-12-31"), (25.5, "2025-12-01", "2025-12-31")]
    )
    tid = tooling["id"]
    client.post(
        f"/tooling/{tid}/parts",
        json={"part_name": "Base plate", "part_drawing_number": "D-1", "material_source": "flame", "part_quantity": 2,
              "weight": 1.5, "material_id": material["id"], "heat_treatment": True},
    )
    client.post(
        f"/tooling/{tid}/parts",
        json={"part_name": "Guide pin", "material_source": "Purchased", "part_quantity": 2, "weight": 1.5,
              "material_id": material["id"]},
    )
    client.post(f"/tooling/{tid}/child-items", json={"name": "Bolt M8", "quantity": 20})

    first = client.post(f"/tooling/{tid}/orders/generate")
    assert first.status_code == 200, first.text
    body = first.json()
    assert body["cutting"]["stats"] == {"inserted": 1, "updated": 0, "skipped": 0}
    assert body["purchase"]["stats"] == {"inserted": 2, "updated": 0, "skipped": 0}

    cut = body["cutting"]["data"][0]
    assert cut["inventory_number"] == "AUTO00201"
    assert cut["material"] == "Q235"
    assert cut["total_weight"] == 3.0
    assert cut["remarks"]

    pin, bolt = body["purchase"]["data"]
    assert pin["inventory_number"] == "AUTO00202"
    assert pin["total_price"] == 67.8
    assert bolt["part_name"] == "Bolt M8"
    assert bolt["unit"] == "pcs"
    assert bolt["inventory_number"] == "AUTO002"

    again = client.post(f"/tooling/{tid}/orders/generate").json()
    assert again["cutting"]["stats"]["skipped"] == 1
    assert again["purchase"]["stats"]["skipped"] == 2


def test_generate_for_unknown_tooling(client):
    assert client.post("/tooling/999/orders/generate").status_code == 404


def test_excel_exports(client):
    tooling = create_tooling(client)
    client.post(
        "/cutting-orders",
        json={"orders": [{"tooling_id": tooling["id"], "part_drawing_number": "D-1", "material_source": "saw"}]},
    )
    cutting = client.get("/cutting-orders/excel")
    purchase = client.get("/purchase-orders/excel")
    assert cutting.status_code == 200
    assert cutting.headers["content-type"] == XLSX_MEDIA_TYPE
    assert cutting.content[:2] == b"PK"
    assert purchase.headers["content-type"] == XLSX_MEDIA_TYPE


def test_soft_deleted_cutting_order_hidden_from_list(client):
    tooling = create_tooling(client)
    order = client.post(
        "/cutting-orders",
        json={"orders": [{"tooling_id": tooling["id"], "part_drawing_number": "D-1", "material_source": "saw"}]},
    ).json()["data"][0]
    assert client.delete(f"/cutting-orders/{order['id']}").json() == {"deleted": 1}
    assert client.get("/cutting-orders").json() == []
    assert client.delete(f"/cutting-orders/{order['id']}").status_code == 404
