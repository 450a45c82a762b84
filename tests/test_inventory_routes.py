from datetime import date, timedelta

import pytest

from seamed.tables import InventoryItem

ALICE = "00u-alice"
BOB = "00u-bob"


@pytest.fixture
def alice(auth_headers):
    return auth_headers(ALICE, email="alice@boat.test")


@pytest.fixture
def bob(auth_headers):
    return auth_headers(BOB)


def item(**fields):
    body = {
        "name": "Ibuprofen",
        "category": "medications",
        "quantity": 40,
        "minQuantity": 10,
        "location": "galley",
    }
    body.update(fields)
    return body


def create(client, headers, **fields):
    res = client.post("/api/inventory", json=item(**fields), headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


def test_requires_auth(client):
    for method, path in [("get", "/api/inventory"),
                         ("post", "/api/inventory"),
                         ("get", "/api/inventory/stats"),
                         ("get", "/api/inventory/ping"),
                         ("get", "/api/inventory/abc"),
                         ("put", "/api/inventory/abc"),
                         ("delete", "/api/inventory/abc")]:
        res = client.request(method, path)
        assert res.status_code == 401, (method, path)
        assert res.json() == {"error": "No token provided"}


def test_ping(client, alice):
    res = client.get("/api/inventory/ping", headers=alice)
    assert res.status_code == 200
    assert res.json() == {"status": "ok", "userId": ALICE}


def test_create(client, alice):
    created = create(client, alice, expirationDate="2031-04-30",
                     photos=["data:image/png;base64,AAAA"],
                     chemicalName="2-(4-isobutylphenyl)propanoic acid")
    assert created["name"] == "Ibuprofen"
    assert created["userId"] == ALICE
    assert created["expirationDate"] == "2031-04-30"
    assert created["chemicalName"] == "2-(4-isobutylphenyl)propanoic acid"
    assert created["photos"] == ["data:image/png;base64,AAAA"]
    assert created["status"] == "ok"
    assert created["id"]
    assert created["createdAt"]
    assert created["updatedAt"]


def test_create_ignores_forged_fields(client, session_factory, alice):
    created = create(client, alice, id="forged-id", userId=BOB,
                     createdAt="1999-01-01T00:00:00Z")
    assert created["id"] != "forged-id"
    assert created["userId"] == ALICE
    assert not created["createdAt"].startswith("1999")

    with session_factory() as db:
        assert db.get(InventoryItem, "forged-id") is None
        assert db.get(InventoryItem, created["id"]).user_id == ALICE


def test_create_accepts_datetime_expiration(client, alice):
    created = create(client, alice, expirationDate="2031-04-30T00:00:00.000Z")
    assert created["expirationDate"] == "2031-04-30"


@pytest.mark.parametrize("field,value", [
    ("expirationDate", "not-a-date"),
    ("expirationDate", "2031-13-45"),
    ("quantity", -1),
    ("minQuantity", "lots"),
    ("category", "snacks"),
    ("location", "bilge"),
    ("name", ""),
])
def test_create_invalid(client, alice, field, value):
    res = client.post("/api/inventory", json=item(**{field: value}),
                      headers=alice)
    assert res.status_code == 422
    assert res.json() == {"error": f"Invalid value for field '{field}'",
                          "field": field}


def test_create_requires_name(client, alice):
    body = item()
    del body["name"]
    res = client.post("/api/inventory", json=body, headers=alice)
    assert res.status_code == 422
    assert res.json()["field"] == "name"


def test_list_only_own_items(client, alice, bob):
    mine = create(client, alice, name="Gauze")
    create(client, bob, name="Splint")

    res = client.get("/api/inventory", headers=alice)
    assert res.status_code == 200
    assert [i["id"] for i in res.json()] == [mine["id"]]

    res = client.get("/api/inventory", headers=bob)
    assert [i["name"] for i in res.json()] == ["Splint"]


def test_list_new_user_is_empty(client, alice):
    res = client.get("/api/inventory", headers=alice)
    assert res.status_code == 200
    assert res.json() == []


def test_get(client, alice, bob):
    mine = create(client, alice)
    res = client.get(f"/api/inventory/{mine['id']}", headers=alice)
    assert res.status_code == 200
    assert res.json() == mine

    res = client.get(f"/api/inventory/{mine['id']}", headers=bob)
    assert res.status_code == 403
    assert res.json() == {"error": "Not authorized"}


def test_missing_and_foreign_look_the_same(client, alice, bob):
    theirs = create(client, bob)
    missing = client.put("/api/inventory/does-not-exist", json={"quantity": 1},
                         headers=alice)
    foreign = client.put(f"/api/inventory/{theirs['id']}",
                         json={"quantity": 1}, headers=alice)
    assert missing.status_code == foreign.status_code == 403
    assert missing.json() == foreign.json() == {"error": "Not authorized"}


def test_update_own_item(client, alice):
    mine = create(client, alice, notes="Take with food")
    res = client.put(f"/api/inventory/{mine['id']}",
                     json={"quantity": 12, "location": "head-fore"},
                     headers=alice)
    assert res.status_code == 200
    updated = res.json()
    assert updated["quantity"] == 12
    assert updated["location"] == "head-fore"
    assert updated["notes"] == "Take with food"
    assert updated["name"] == mine["name"]
    assert updated["createdAt"] == mine["createdAt"]


def test_update_cannot_reassign(client, alice, bob, session_factory):
    mine = create(client, alice)
    res = client.put(f"/api/inventory/{mine['id']}",
                     json={"userId": BOB, "id": "new-id", "quantity": 3},
                     headers=alice)
    assert res.status_code == 200
    assert res.json()["userId"] == ALICE
    assert res.json()["id"] == mine["id"]

    with session_factory() as db:
        assert db.get(InventoryItem, mine["id"]).user_id == ALICE


def test_update_clears_expiration(client, alice):
    mine = create(client, alice, expirationDate="2031-04-30")
    res = client.put(f"/api/inventory/{mine['id']}",
                     json={"expirationDate": None}, headers=alice)
    assert res.status_code == 200
    assert res.json()["expirationDate"] is None


def test_update_rejects_null_required(client, alice):
    mine = create(client, alice)
    res = client.put(f"/api/inventory/{mine['id']}", json={"name": None},
                     headers=alice)
    assert res.status_code == 422
    assert res.json()["field"] == "name"


def test_update_foreign_item_unchanged(client, alice, bob, session_factory):
    theirs = create(client, bob, quantity=5)
    res = client.put(f"/api/inventory/{theirs['id']}",
                     json={"quantity": 999, "name": "Hijacked"},
                     headers=alice)
    assert res.status_code == 403

    with session_factory() as db:
        row = db.get(InventoryItem, theirs["id"])
        assert row.quantity == 5
        assert row.name == "Ibuprofen"
        assert row.user_id == BOB


def test_delete(client, alice, session_factory):
    mine = create(client, alice)
    res = client.delete(f"/api/inventory/{mine['id']}", headers=alice)
    assert res.status_code == 204
    assert res.content == b""

    with session_factory() as db:
        assert db.get(InventoryItem, mine["id"]) is None

    res = client.delete(f"/api/inventory/{mine['id']}", headers=alice)
    assert res.status_code == 403


def test_delete_foreign_item(client, alice, bob, session_factory):
    theirs = create(client, bob)
    res = client.delete(f"/api/inventory/{theirs['id']}", headers=alice)
    assert res.status_code == 403
    assert res.json() == {"error": "Not authorized"}

    with session_factory() as db:
        assert db.get(InventoryItem, theirs["id"]) is not None


def test_status_and_filters(client, alice):
    today = date.today()
    expired = create(client, alice, name="Old",
                     expirationDate=(today - timedelta(days=3)).isoformat())
    soon = create(client, alice, name="Soon", category="first-aid",
                  expirationDate=(today + timedelta(days=10)).isoformat())
    low = create(client, alice, name="Low", quantity=2, minQuantity=5,
                 location="head-aft", barcode="0123456789012")
    empty = create(client, alice, name="Empty", quantity=0)
    fine = create(client, alice, name="Fine",
                  expirationDate=(today + timedelta(days=400)).isoformat())

    assert expired["status"] == "critical"
    assert soon["status"] == "expiring-soon"
    assert low["status"] == "low-stock"
    assert empty["status"] == "critical"
    assert fine["status"] == "ok"

    def names(**params):
        res = client.get("/api/inventory", params=params, headers=alice)
        assert res.status_code == 200, res.text
        return {i["name"] for i in res.json()}

    assert names(status="expired") == {"Old"}
    assert names(status="expiring-soon") == {"Soon"}
    assert names(status="low-stock") == {"Low"}
    assert names(status="critical") == {"Old", "Empty"}
    assert names(status="ok") == {"Soon", "Fine"}
    assert names(category="first-aid") == {"Soon"}
    assert names(location="head-aft") == {"Low"}
    assert names(barcode="0123456789012") == {"Low"}
    assert names(category="medications", location="galley") == \
        {"Old", "Empty", "Fine"}


def test_invalid_filter(client, alice):
    res = client.get("/api/inventory", params={"status": "lost"},
                     headers=alice)
    assert res.status_code == 422
    assert res.json()["field"] == "status"


def test_stats(client, alice, bob):
    today = date.today()
    create(client, alice, quantity=1, minQuantity=5)
    create(client, alice, category="tools",
           expirationDate=(today + timedelta(days=5)).isoformat())
    create(client, alice, expirationDate=(today - timedelta(days=5)).isoformat())
    create(client, bob)

    res = client.get("/api/inventory/stats", headers=alice)
    assert res.status_code == 200
    stats = res.json()
    assert stats["totalItems"] == 3
    assert stats["lowStockCount"] == 1
    assert stats["expiringSoonCount"] == 1
    assert stats["expiredCount"] == 1
    assert stats["categoryCounts"]["medications"] == 2
    assert stats["categoryCounts"]["tools"] == 1
    assert stats["categoryCounts"]["ppe"] == 0


@pytest.mark.parametrize("method,path", [
    ("post", "/api/inventory"),
    ("put", "/api/inventory/abc"),
])
@pytest.mark.parametrize("content", [b"{not json", b"[1, 2", b""])
def test_bad_body_without_token(client, session_factory, method, path,
                                content):
    """Authentication is decided before the body is looked at."""
    res = client.request(method, path, content=content,
                         headers={"Content-Type": "application/json"})
    assert res.status_code == 401
    assert res.json() == {"error": "No token provided"}

    with session_factory() as db:
        assert db.query(InventoryItem).count() == 0


def test_bad_body_with_invalid_token(client):
    res = client.post("/api/inventory", content=b"{not json",
                      headers={"Content-Type": "application/json",
                               "Authorization": "Bearer BOGUS"})
    assert res.status_code == 401
    assert res.json() == {"error": "Invalid token"}


@pytest.mark.parametrize("content", [b"{not json", b"", b"[1, 2]", b'"Gauze"'])
def test_bad_body(client, alice, content):
    res = client.post("/api/inventory", content=content,
                      headers={**alice, "Content-Type": "application/json"})
    assert res.status_code == 422
    assert res.json() == {"error": "Invalid value for field 'body'",
                          "field": "body"}


def test_bad_update_body(client, alice):
    mine = create(client, alice)
    res = client.put(f"/api/inventory/{mine['id']}", content=b"{not json",
                     headers={**alice, "Content-Type": "application/json"})
    assert res.status_code == 422
    assert res.json()["field"] == "body"
