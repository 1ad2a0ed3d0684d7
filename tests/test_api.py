"""
HTTP tests: routers, error mapping, end-to-end sheet workflow.

Tests:
1-4.   Health and calculation preview
5-7.   Customers
8-14.  Measurement sheets and slab entries
15-18. Error responses
"""


def _create_customer(client, name="Kaveri Stone Works"):
    resp = client.post("/api/customers/", json={
        "name": name,
        "phone_number": "9443300112",
        "address": "4 Industrial Estate, Krishnagiri",
    })
    assert resp.status_code == 201
    return resp.json()


def _create_sheet(client, customer_type="granite_shops"):
    customer = _create_customer(client)
    resp = client.post("/api/measurement-sheets/", json={
        "customer_id": customer["id"],
        "customer_type": customer_type,
    })
    assert resp.status_code == 201
    return resp.json()


# ============================================================
# Health and calculation preview
# ============================================================

def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_calculation_preview(client):
    resp = client.post("/api/calculations/", json={
        "length": 150, "breadth": 146, "customer_type": "granite_shops",
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["final_length"] == 147
    assert data["final_breadth"] == 144
    assert data["area"] == 147.00
    assert data["description"] == "Length-3 and Breadth-2 with divisibility by 3 adjustment"
    assert len(data["calculation_steps"]) == 4


def test_calculation_preview_validation_error(client):
    resp = client.post("/api/calculations/", json={
        "length": "abc", "breadth": 20000, "customer_type": "retail",
    })
    assert resp.status_code == 400
    data = resp.json()
    assert data["error_type"] == "validation"
    assert [d["field"] for d in data["details"]] == ["length", "breadth"]
    assert data["details"][1]["reason"] == "Breadth cannot exceed 10,000 inches"


def test_customer_types(client):
    resp = client.get("/api/calculations/customer-types")
    assert resp.status_code == 200
    by_token = {t["token"]: t for t in resp.json()}
    assert set(by_token) == {"retail", "granite_shops", "builders", "outstation_parties", "exporters"}
    assert by_token["granite_shops"]["label"] == "Granite Shops (Wholesalers)"


# ============================================================
# Customers
# ============================================================

def test_create_and_get_customer(client):
    customer = _create_customer(client)
    resp = client.get(f"/api/customers/{customer['id']}")
    assert resp.status_code == 200
    assert resp.json()["name"] == "Kaveri Stone Works"


def test_update_customer(client):
    customer = _create_customer(client)
    resp = client.patch(f"/api/customers/{customer['id']}", json={"phone_number": "9000000001"})
    assert resp.status_code == 200
    assert resp.json()["phone_number"] == "9000000001"
    assert resp.json()["name"] == "Kaveri Stone Works"


def test_list_customers(client):
    _create_customer(client, "B Granites")
    _create_customer(client, "A Granites")
    names = [c["name"] for c in client.get("/api/customers/").json()]
    assert names == ["A Granites", "B Granites"]


# ============================================================
# Sheets and entries
# ============================================================

def test_sheet_workflow(client):
    sheet = _create_sheet(client)
    assert sheet["sheet_number"] == "MS-0001"
    assert sheet["status"] == "draft"

    resp = client.post("/api/slab-entries/", json={
        "sheet_id": sheet["id"], "block_number": "B-7", "length": 149, "breadth": 145, "category": "D",
    })
    assert resp.status_code == 201
    entry = resp.json()
    assert entry["serial_number"] == 1
    assert entry["area"] == 141.00

    resp = client.post("/api/slab-entries/batch", json={
        "sheet_id": sheet["id"],
        "entries": [
            {"block_number": "B-8", "length": 150, "breadth": 146, "category": "F"},
            {"block_number": "B-9", "length": 150, "breadth": 146, "category": "S"},
        ],
    })
    assert resp.status_code == 201
    assert [e["serial_number"] for e in resp.json()] == [2, 3]

    full = client.get(f"/api/measurement-sheets/{sheet['id']}?include_entries=true").json()
    assert full["total_area"] == 435.00
    assert len(full["entries"]) == 3

    resp = client.post(f"/api/measurement-sheets/{sheet['id']}/complete")
    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"


def test_update_and_delete_entry(client):
    sheet = _create_sheet(client, "retail")
    entries = client.post("/api/slab-entries/batch", json={
        "sheet_id": sheet["id"],
        "entries": [{"block_number": f"R-{i}", "length": 144, "breadth": 144, "category": "F"}
                    for i in range(3)],
    }).json()

    resp = client.put(f"/api/slab-entries/{entries[0]['id']}", json={"breadth": 72})
    assert resp.status_code == 200
    assert resp.json()["area"] == 72.00

    fetched = client.get(f"/api/slab-entries/{entries[0]['id']}").json()
    assert fetched["breadth"] == 72
    assert fetched["calculation_trail"].startswith("(144 × 72) ÷ 144")

    resp = client.delete(f"/api/slab-entries/{entries[1]['id']}")
    assert resp.status_code == 200

    listing = client.get(f"/api/slab-entries/sheet/{sheet['id']}").json()
    assert [e["serial_number"] for e in listing["entries"]] == [1, 2]
    assert listing["pagination"] is None

    sheet_now = client.get(f"/api/measurement-sheets/{sheet['id']}").json()
    assert sheet_now["total_area"] == 216.00


def test_batch_update_entries(client):
    sheet = _create_sheet(client, "retail")
    entries = client.post("/api/slab-entries/batch", json={
        "sheet_id": sheet["id"],
        "entries": [{"block_number": "R-1", "length": 144, "breadth": 144, "category": "F"}],
    }).json()
    resp = client.put("/api/slab-entries/batch", json=[{"id": entries[0]["id"], "category": "LD"}])
    assert resp.status_code == 200
    assert resp.json()[0]["category"] == "LD"


def test_paginated_entry_listing(client):
    sheet = _create_sheet(client)
    client.post("/api/slab-entries/batch", json={
        "sheet_id": sheet["id"],
        "entries": [{"block_number": f"P-{i}", "length": 100, "breadth": 50, "category": "F"}
                    for i in range(3)],
    })
    data = client.get(f"/api/slab-entries/sheet/{sheet['id']}?page=2&limit=2").json()
    assert [e["serial_number"] for e in data["entries"]] == [3]
    assert data["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}


def test_search_recent_and_statistics(client):
    _create_sheet(client, "retail")
    _create_sheet(client, "exporters")

    data = client.get("/api/measurement-sheets/?customer_type=exporters").json()
    assert data["pagination"]["total"] == 1
    assert data["sheets"][0]["customer_type"] == "exporters"

    recent = client.get("/api/measurement-sheets/recent?limit=5").json()
    assert len(recent) == 2

    stats = client.get("/api/measurement-sheets/statistics").json()
    assert stats["total_sheets"] == 2
    assert stats["draft_sheets"] == 2


def test_patch_sheet_customer_type(client):
    sheet = _create_sheet(client, "retail")
    resp = client.patch(f"/api/measurement-sheets/{sheet['id']}", json={"customer_type": "builders"})
    assert resp.status_code == 200
    assert resp.json()["customer_type"] == "builders"


def test_delete_sheet(client):
    sheet = _create_sheet(client)
    assert client.delete(f"/api/measurement-sheets/{sheet['id']}").status_code == 200
    assert client.get(f"/api/measurement-sheets/{sheet['id']}").status_code == 404


# ============================================================
# Error responses
# ============================================================

def test_missing_sheet_is_404(client):
    resp = client.get("/api/measurement-sheets/nope")
    assert resp.status_code == 404
    assert resp.json()["error_type"] == "sheet_not_found"
    assert resp.json()["details"][0]["value"] == "nope"


def test_entry_validation_error(client):
    sheet = _create_sheet(client)
    resp = client.post("/api/slab-entries/", json={
        "sheet_id": sheet["id"], "block_number": "B-1", "length": 0, "breadth": 10, "category": "F",
    })
    assert resp.status_code == 400
    assert resp.json()["details"][0]["reason"] == "Length must be greater than 0"


def test_unknown_customer_type_on_sheet(client):
    customer = _create_customer(client)
    resp = client.post("/api/measurement-sheets/", json={
        "customer_id": customer["id"], "customer_type": "wholesale",
    })
    assert resp.status_code == 400
    assert resp.json()["details"][0]["field"] == "customer_type"


def test_oversized_integer_dimension_is_400(client):
    resp = client.post("/api/calculations/", json={
        "length": int("1" * 400), "breadth": 100, "customer_type": "retail",
    })
    assert resp.status_code == 400
    assert resp.json()["details"][0]["reason"] == "Length must be a valid number"
