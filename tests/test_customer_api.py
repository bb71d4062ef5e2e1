import httpx
import pytest

from crm.client.entities import CustomerFormData
from crm.client.errors import ConflictError, NotFoundError
from crm.client.remote import CustomerAPI
from crm.client.store import CustomerStore


def _body(name="John Anderson", email="john.anderson@example.com", **kw):
    return {
        "fullName": name,
        "email": email,
        "phoneNumber": kw.get("phone", "+1 (555) 123-4567"),
        "address": kw.get("address", "123 Main Street, New York, NY 10001"),
    }


async def _create(client, **kw):
    r = await client.post("/customers", json=_body(**kw))
    assert r.status_code == 201, r.text
    return r.json()["data"]


async def test_health(http_client):
    r = await http_client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Server is running"


async def test_create_returns_camel_case_record(http_client):
    r = await http_client.post("/customers", json=_body(email="John.Anderson@Example.com"))
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Customer created successfully"
    data = body["data"]
    assert data["email"] == "john.anderson@example.com"
    assert data["fullName"] == "John Anderson"
    assert data["phoneNumber"] == "+1 (555) 123-4567"
    assert {"id", "createdAt", "updatedAt"} <= set(data)


async def test_duplicate_email_is_rejected(http_client):
    await _create(http_client)
    r = await http_client.post("/customers", json=_body(name="Someone Else", email="JOHN.anderson@example.com"))
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Email already exists"}


@pytest.mark.parametrize(
    "override",
    [
        {"fullName": "J"},
        {"email": "not-an-email"},
        {"phoneNumber": "555-0100"},
        {"address": "abc"},
    ],
)
async def test_invalid_body_is_a_400_envelope(http_client, override):
    r = await http_client.post("/customers", json={**_body(), **override})
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["message"].startswith("Validation Error:")


async def test_list_is_newest_first(http_client):
    first = await _create(http_client, email="a@example.com")
    second = await _create(http_client, email="b@example.com")
    r = await http_client.get("/customers")
    assert r.status_code == 200
    assert [c["id"] for c in r.json()["data"]] == [second["id"], first["id"]]


async def test_get_by_id_and_missing(http_client):
    created = await _create(http_client)
    r = await http_client.get(f"/customers/{created['id']}")
    assert r.json()["data"]["id"] == created["id"]
    assert r.json()["data"]["email"] == created["email"]

    r = await http_client.get("/customers/does-not-exist")
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Customer not found"}


async def test_search_matches_name_email_and_phone(http_client):
    await _create(http_client, name="Grace Hopper", email="grace@navy.mil", phone="+1 (202) 555-0199")
    await _create(http_client, name="Alan Turing", email="alan@bletchley.uk", phone="+44 1908 640404")

    async def names(q):
        r = await http_client.get("/customers/search", params={"query": q})
        assert r.status_code == 200
        return [c["fullName"] for c in r.json()["data"]]

    assert await names("GRACE") == ["Grace Hopper"]
    assert await names("bletchley") == ["Alan Turing"]
    assert await names("640404") == ["Alan Turing"]
    assert await names("%") == []


async def test_search_requires_query(http_client):
    r = await http_client.get("/customers/search")
    assert r.status_code == 400
    assert r.json()["message"] == "Please provide a search query"


async def test_update_applies_only_non_blank_fields(http_client):
    created = await _create(http_client)
    r = await http_client.put(
        f"/customers/{created['id']}",
        json={"fullName": "Johnny Anderson", "phoneNumber": "", "address": "   "},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Customer updated successfully"
    data = body["data"]
    assert data["fullName"] == "Johnny Anderson"
    assert data["phoneNumber"] == created["phoneNumber"]
    assert data["address"] == created["address"]
    assert data["createdAt"] == created["createdAt"]


async def test_update_to_taken_email_is_rejected(http_client):
    await _create(http_client, email="taken@example.com")
    other = await _create(http_client, email="other@example.com")
    r = await http_client.put(f"/customers/{other['id']}", json={"email": "taken@example.com"})
    assert r.status_code == 400
    assert r.json()["message"] == "Email already exists"

    r = await http_client.put(f"/customers/{other['id']}", json={"email": "other@example.com"})
    assert r.status_code == 200


async def test_update_missing_customer(http_client):
    r = await http_client.put("/customers/missing", json={"fullName": "Nobody Here"})
    assert r.status_code == 404


async def test_delete_returns_record_then_404(http_client):
    created = await _create(http_client)
    r = await http_client.delete(f"/customers/{created['id']}")
    assert r.status_code == 200
    assert r.json()["message"] == "Customer deleted successfully"
    assert r.json()["data"]["id"] == created["id"]

    r = await http_client.delete(f"/customers/{created['id']}")
    assert r.status_code == 404


async def test_unknown_route(http_client):
    r = await http_client.get("/nowhere")
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Route not found"}


# ───────────────────────── client against the real server ───────────────────────── #

async def test_store_round_trip_through_http(http_client, theme, notifications):
    store = CustomerStore(
        CustomerAPI(client=http_client),
        theme,
        notify=lambda level, message: notifications.append((level, message)),
    )
    ada = CustomerFormData(
        full_name="Ada Lovelace",
        email="Ada@Example.com",
        phone_number="+44 20 7946 0100",
        address="1 Analytical Engine Way",
    )

    created = await store.add_customer(ada)
    assert created.email == "ada@example.com"

    with pytest.raises(ConflictError):
        await store.add_customer(ada)
    assert store.customers == (created,)

    await store.delete_customer(created.id)
    with pytest.raises(NotFoundError):
        await store.api.fetch_customer(created.id)

    restored = await store.undo_delete()
    assert restored is not None
    assert restored.id != created.id
    assert restored.email == created.email

    assert await store.load_customers()
    assert [c.id for c in store.customers] == [restored.id]
