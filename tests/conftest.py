import uuid

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
import main
from config import Settings

ADMIN = {"username": "admin", "password": "Layo@1ly"}


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_name=f"test-{uuid.uuid4().hex}",
        upload_dir=str(tmp_path / "uploads"),
        admin_username=ADMIN["username"],
        admin_password=ADMIN["password"],
        bcrypt_rounds=4,
    )


@pytest.fixture
def mongo(monkeypatch):
    monkeypatch.setattr(database, "MongoClient", mongomock.MongoClient)
    yield
    database.close()


@pytest.fixture
def db(mongo, settings):
    return database.connect(settings.mongo_url, settings.database_name)


@pytest.fixture
def client(mongo, settings):
    with TestClient(main.create_app(settings)) as c:
        yield c


@pytest.fixture
def product_payload():
    return {
        "name": "Ankara Fabric",
        "price": 4500,
        "description": "Six yards, cotton wax print",
        "category": "Textiles",
        "mediaType": "image",
    }


@pytest.fixture
def store(client):
    return database.db
