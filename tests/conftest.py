import asyncio

import pytest
from fastapi.testclient import TestClient

from proxyhost.blob_store import InMemoryBlobStore
from proxyhost.config import Settings
from proxyhost.generator import SiteGenerator
from proxyhost.main import create_app


@pytest.fixture
def store():
    return InMemoryBlobStore()


@pytest.fixture
def put(store):
    def _put(key, data, content_type="application/octet-stream"):
        asyncio.run(store.put(key, data, content_type))
    return _put


@pytest.fixture
def client(store):
    app = create_app(
        settings=Settings(),
        store=store,
        generator=SiteGenerator(use_mock=True),
    )
    return TestClient(app)


@pytest.fixture
def headers():
    return {"X-Tenant-Id": "demo-user"}
