import copy
import sys
from pathlib import Path

import pytest

# Ensure the project root is on sys.path for direct pytest runs
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from core.config import settings
from services import firebase_service, note_service, photo_service, place_service


class FakeQuery:
    def __init__(self, ref, child):
        self._ref = ref
        self._child = child
        self._value = None

    def equal_to(self, value):
        self._value = value
        return self

    def get(self):
        items = self._ref.get() or {}
        return {key: item for key, item in items.items() if item.get(self._child) == self._value}


class FakeReference:
    """Just enough of firebase_admin.db.Reference for the services."""

    def __init__(self, db, path):
        self._db = db
        self.path = path.strip("/")
        self.key = self.path.rsplit("/", 1)[-1] if self.path else None

    def _parts(self):
        return [part for part in self.path.split("/") if part]

    def get(self, shallow=False):
        node = self._db.data
        for part in self._parts():
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        if shallow and isinstance(node, dict):
            return {key: True for key in node}
        return copy.deepcopy(node)

    def set(self, value):
        self._db.check_writable(self.path)
        parts = self._parts()
        node = self._db.data
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = copy.deepcopy(value)

    def update(self, values):
        for key, value in values.items():
            child = self.child(key)
            if value is None:
                child.delete()
            else:
                child.set(value)

    def delete(self):
        parts = self._parts()
        node = self._db.data
        for part in parts[:-1]:
            if part not in node:
                return
            node = node[part]
        node.pop(parts[-1], None)

    def child(self, key):
        return FakeReference(self._db, f"{self.path}/{key}")

    def push(self):
        self._db.counter += 1
        return self.child(f"-Nkey{self._db.counter:05d}")

    def order_by_child(self, child):
        return FakeQuery(self, child)


class FakeDb:
    def __init__(self):
        self.data = {}
        self.counter = 0
        self.fail_writes_under = None

    def check_writable(self, path):
        if self.fail_writes_under and path.startswith(self.fail_writes_under):
            raise RuntimeError("Permission denied")

    def reference(self, path="/"):
        return FakeReference(self, path)


class FakeBlob:
    def __init__(self, bucket, name):
        self.bucket = bucket
        self.name = name

    @property
    def public_url(self):
        return f"https://storage.googleapis.com/test-bucket/{self.name}"

    def upload_from_string(self, data, content_type=None):
        self.bucket.objects[self.name] = data
        self.bucket.content_types[self.name] = content_type

    def delete(self):
        self.bucket.delete_attempts.append(self.name)
        if self.bucket.fail_deletes:
            raise RuntimeError("Storage unavailable")
        self.bucket.objects.pop(self.name, None)


class FakeBucket:
    def __init__(self):
        self.objects = {}
        self.content_types = {}
        self.delete_attempts = []
        self.fail_deletes = False

    def blob(self, name):
        return FakeBlob(self, name)


@pytest.fixture(autouse=True)
def unconfigured_providers(monkeypatch):
    """Tests start with no Maps/Gemini keys; individual tests opt in."""
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", None)
    monkeypatch.setattr(settings, "GEMINI_API_KEY", None)
    monkeypatch.setattr(settings, "STORAGE_PUBLIC_BASE_URL", None)


@pytest.fixture
def fake_db(monkeypatch):
    fake = FakeDb()
    for module in (place_service, note_service, photo_service):
        monkeypatch.setattr(module, "db", fake)
    return fake


@pytest.fixture
def fake_bucket(monkeypatch):
    bucket = FakeBucket()
    monkeypatch.setattr(firebase_service, "get_bucket", lambda: bucket)
    return bucket


@pytest.fixture
def client(fake_db, fake_bucket):
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)


@pytest.fixture
def place_payload():
    return {
        "google_place_id": "ChIJ2bO9V2cXHxURpnt0iDXu1xM",
        "google_maps_url": "https://www.google.com/maps/place/Raouche+Rocks/@33.8869,35.4697,14z",
        "name": "Raouche Rocks",
        "address": "Beirut, Lebanon",
        "latitude": 33.8869,
        "longitude": 35.4697,
        "status": "planned",
        "types": ["natural_feature", "tourist_attraction"],
        "raw_reviews": [{"text": "Unreal at sunset.", "rating": 5, "authorName": "Rana"}],
        "added_by": "khaled",
    }
