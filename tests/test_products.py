import database
import main
from errors import StorageError

from conftest import ADMIN


def create(client, payload, creds=ADMIN):
    return client.post("/api/products", json={**payload, **creds})


def test_list_products_empty(client):
    res = client.get("/api/products")
    assert res.status_code == 200
    assert res.json() == []


def test_create_product_echoes_fields(client, product_payload):
    res = create(client, product_payload)
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    product = body["product"]
    for key, value in product_payload.items():
        assert product[key] == value
    assert product["media"] == ""
    assert len(product["_id"]) == 24
    assert "username" not in product
    assert "password" not in product


def test_created_products_get_distinct_ids(client, product_payload):
    first = create(client, product_payload).json()["product"]["_id"]
    second = create(client, product_payload).json()["product"]["_id"]
    assert first != second


def test_create_product_from_form_fields(client, product_payload):
    form = {**{k: str(v) for k, v in product_payload.items()}, **ADMIN}
    res = client.post("/api/products", data=form)
    assert res.status_code == 200
    assert res.json()["product"]["price"] == 4500


def test_create_product_without_media_type(client, product_payload):
    del product_payload["mediaType"]
    res = create(client, product_payload)
    assert res.status_code == 200
    assert "mediaType" not in res.json()["product"]


def test_missing_field_is_rejected_and_nothing_saved(client, product_payload):
    for field in ("name", "price", "description", "category"):
        payload = dict(product_payload)
        del payload[field]
        res = create(client, payload)
        assert res.status_code == 400
        assert field in res.json()["error"]
    assert client.get("/api/products").json() == []


def test_empty_required_string_is_rejected(client, product_payload):
    res = create(client, {**product_payload, "name": ""})
    assert res.status_code == 400


def test_bad_price_is_rejected(client, product_payload):
    res = create(client, {**product_payload, "price": "cheap"})
    assert res.status_code == 400
    assert "price" in res.json()["error"]


def test_unknown_media_type_is_rejected(client, product_payload):
    res = create(client, {**product_payload, "mediaType": "audio"})
    assert res.status_code == 400


def test_wrong_password_is_unauthorized(client, product_payload):
    res = create(client, product_payload, {"username": "admin", "password": "nope"})
    assert res.status_code == 401
    assert res.json() == {"error": "Invalid credentials"}
    assert client.get("/api/products").json() == []


def test_unknown_seller_is_unauthorized_even_with_invalid_payload(client):
    res = create(client, {"name": ""}, {"username": "ghost", "password": "x"})
    assert res.status_code == 401


def test_missing_credentials_is_unauthorized(client, product_payload):
    res = client.post("/api/products", json=product_payload)
    assert res.status_code == 401


def test_delete_product(client, product_payload):
    keep = create(client, product_payload).json()["product"]
    drop = create(client, {**product_payload, "name": "Adire"}).json()["product"]

    res = client.request("DELETE", f"/api/products/{drop['_id']}", json=ADMIN)
    assert res.status_code == 200
    assert res.json() == {"success": True}

    assert client.get("/api/products").json() == [keep]


def test_delete_nonexistent_product_still_succeeds(client):
    res = client.request("DELETE", "/api/products/000000000000000000000000", json=ADMIN)
    assert res.status_code == 200
    assert res.json() == {"success": True}


def test_delete_with_malformed_id(client):
    res = client.request("DELETE", "/api/products/not-an-id", json=ADMIN)
    assert res.status_code == 400
    assert "Cast to ObjectId failed" in res.json()["error"]


def test_delete_requires_credentials(client, product_payload):
    product = create(client, product_payload).json()["product"]
    res = client.request("DELETE", f"/api/products/{product['_id']}", json={"username": "admin"})
    assert res.status_code == 401
    assert len(client.get("/api/products").json()) == 1


def test_list_reports_storage_error(client, monkeypatch):
    def broken(*args, **kwargs):
        raise StorageError("connection refused")

    monkeypatch.setattr(main, "get_documents", broken)
    res = client.get("/api/products")
    assert res.status_code == 500
    assert res.json() == {"error": "Server error"}


def test_create_reports_storage_error(client, monkeypatch, product_payload):
    def broken(*args, **kwargs):
        raise StorageError("write failed")

    monkeypatch.setattr(main, "create_document", broken)
    res = create(client, product_payload)
    assert res.status_code == 400
    assert res.json() == {"error": "write failed"}
    assert database.get_documents("product") == []


def test_nan_price_from_form_is_rejected(client, product_payload):
    form = {**{k: str(v) for k, v in product_payload.items()}, **ADMIN, "price": "nan"}
    res = client.post("/api/products", data=form)
    assert res.status_code == 400
    assert "price" in res.json()["error"]
    assert database.get_documents("product") == []
    assert client.get("/api/products").status_code == 200


def test_infinite_price_from_json_is_rejected(client):
    raw = (
        b'{"name": "Adire", "price": Infinity, "description": "Indigo", "category": "Textiles",'
        b' "username": "admin", "password": "Layo@1ly"}'
    )
    res = client.post("/api/products", content=raw, headers={"content-type": "application/json"})
    assert res.status_code == 400
    assert database.get_documents("product") == []


def test_seller_lookup_failure_on_create(client, monkeypatch, product_payload):
    def broken(*args, **kwargs):
        raise StorageError("lookup failed")

    monkeypatch.setattr(database, "find_document", broken)
    res = create(client, product_payload)
    assert res.status_code == 400
    assert res.json() == {"error": "lookup failed"}


def test_seller_lookup_failure_on_delete(client, monkeypatch):
    def broken(*args, **kwargs):
        raise StorageError("lookup failed")

    monkeypatch.setattr(database, "find_document", broken)
    res = client.request("DELETE", "/api/products/000000000000000000000000", json=ADMIN)
    assert res.status_code == 400
    assert res.json() == {"error": "lookup failed"}


def test_delete_reports_storage_error(client, monkeypatch):
    def broken(*args, **kwargs):
        raise StorageError("delete failed")

    monkeypatch.setattr(main, "delete_document", broken)
    res = client.request("DELETE", "/api/products/000000000000000000000000", json=ADMIN)
    assert res.status_code == 400
    assert res.json() == {"error": "delete failed"}
