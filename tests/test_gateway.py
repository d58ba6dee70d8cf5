import asyncio

import pytest

from proxyhost.blob_store import BackingStoreUnavailable, BlobStore, FilesystemBlobStore
from proxyhost.config import GatewayConfig
from proxyhost.gateway import SiteGateway, guess_media_type
from proxyhost.keys import resolve


class BrokenStore(BlobStore):
    async def get(self, key):
        raise BackingStoreUnavailable("connection reset")

    async def put(self, key, data, content_type):
        raise BackingStoreUnavailable("connection reset")


class ResetStore(BlobStore):
    async def get(self, key):
        raise ConnectionResetError("peer reset")

    async def put(self, key, data, content_type):
        pass


class SlowStore(BlobStore):
    async def get(self, key):
        await asyncio.sleep(5)

    async def put(self, key, data, content_type):
        pass


def serve(gateway, raw_path):
    return asyncio.run(gateway.serve(raw_path))


@pytest.mark.parametrize("path,expected", [
    ("index.html", "text/html; charset=utf-8"),
    ("page.htm", "text/html; charset=utf-8"),
    ("css/site.css", "text/css; charset=utf-8"),
    ("js/app.js", "application/javascript; charset=utf-8"),
    ("data/feed.json", "application/json; charset=utf-8"),
    ("img/logo.png", "image/png"),
    ("photo.jpg", "image/jpeg"),
    ("photo.jpeg", "image/jpeg"),
    ("anim.gif", "image/gif"),
    ("icon.svg", "image/svg+xml"),
    ("favicon.ico", "image/x-icon"),
    ("robots.txt", "text/plain; charset=utf-8"),
    ("archive.tar.gz", "application/octet-stream"),
    ("README", "application/octet-stream"),
])
def test_guess_media_type(path, expected):
    assert guess_media_type(path) == expected


def test_guess_media_type_is_case_insensitive():
    assert guess_media_type("FOO.HTML") == guess_media_type("foo.html")
    assert guess_media_type("Img/Logo.PnG") == "image/png"


def test_guess_media_type_matches_whole_path_suffix():
    # a dotted directory name does not decide the type
    assert guess_media_type("assets.css/readme") == "application/octet-stream"


def test_guess_media_type_first_match_wins():
    table = ((".js", "first"), (".min.js", "second"))
    assert guess_media_type("app.min.js", table) == "first"


def test_serve_found_object(store, put):
    put(resolve("u1", "s1", "img/logo.png"), b"\x89PNG-data", "image/png")
    gateway = SiteGateway(store)

    response = serve(gateway, "/u1/s1/img/logo.png")

    assert response.status_code == 200
    assert response.body == b"\x89PNG-data"
    assert response.headers["content-type"] == "image/png"
    assert response.headers["cache-control"] == "public, max-age=300"


def test_serve_site_root_uses_index(store, put):
    put(resolve("u1", "s1", ""), b"<h1>hello</h1>", "text/html")
    gateway = SiteGateway(store)

    response = serve(gateway, "/u1/s1")

    assert response.status_code == 200
    assert response.body == b"<h1>hello</h1>"
    assert response.headers["content-type"] == "text/html; charset=utf-8"


def test_serve_infers_type_from_path_not_stored_type(store, put):
    put(resolve("u1", "s1", "PAGE.HTML"), b"<p>x</p>", "application/octet-stream")
    gateway = SiteGateway(store)

    response = serve(gateway, "/u1/s1/PAGE.HTML")

    assert response.headers["content-type"] == "text/html; charset=utf-8"


def test_serve_missing_object(store):
    gateway = SiteGateway(store)

    response = serve(gateway, "/u1/s1/nope.html")

    assert response.status_code == 404
    assert response.body == b"Not found"
    assert "cache-control" not in response.headers


def test_serve_malformed_path(store):
    gateway = SiteGateway(store)

    response = serve(gateway, "/u1")

    assert response.status_code == 400
    assert b"u1" not in response.body
    assert "cache-control" not in response.headers


def test_serve_store_failure():
    gateway = SiteGateway(BrokenStore())

    response = serve(gateway, "/u1/s1/index.html")

    assert response.status_code == 503
    assert b"sites/" not in response.body
    assert b"u1" not in response.body


def test_serve_store_timeout():
    gateway = SiteGateway(SlowStore(), GatewayConfig(fetch_timeout_seconds=0.05))

    response = serve(gateway, "/u1/s1/index.html")

    assert response.status_code == 503


def test_serve_uses_injected_cache_policy(store, put):
    put(resolve("u1", "s1", "app.js"), b"console.log(1)", "application/javascript")
    gateway = SiteGateway(store, GatewayConfig(cache_max_age=60))

    response = serve(gateway, "/u1/s1/app.js")

    assert response.headers["cache-control"] == "public, max-age=60"


def test_serve_uses_injected_media_table(store, put):
    put(resolve("u1", "s1", "feed.xml"), b"<rss/>", "application/xml")
    config = GatewayConfig(media_types=((".xml", "application/rss+xml"),))
    gateway = SiteGateway(store, config)

    response = serve(gateway, "/u1/s1/feed.xml")

    assert response.headers["content-type"] == "application/rss+xml"


def test_tenants_are_isolated(store, put):
    put(resolve("u1", "s1", ""), b"tenant one", "text/html")
    gateway = SiteGateway(store)

    assert serve(gateway, "/u2/s1").status_code == 404
    assert serve(gateway, "/u1/s1").body == b"tenant one"


def test_serve_unexpected_store_error():
    gateway = SiteGateway(ResetStore())

    response = serve(gateway, "/u1/s1/index.html")

    assert response.status_code == 503
    assert response.body == b"Storage backend unavailable"


def test_serve_from_filesystem_store(tmp_path):
    store = FilesystemBlobStore(str(tmp_path))
    asyncio.run(store.put(resolve("u1", "s1", "img/logo.png"), b"\x89PNG", "image/png"))
    asyncio.run(store.put(resolve("u1", "s1", "backup.tmp"), b"old", "text/plain"))
    gateway = SiteGateway(store)

    png = serve(gateway, "/u1/s1/img/logo.png")
    assert png.status_code == 200
    assert png.body == b"\x89PNG"
    assert png.headers["content-type"] == "image/png"

    assert serve(gateway, "/u1/s1/backup.tmp").body == b"old"
    assert serve(gateway, "/u1/s1").status_code == 404


def test_serve_torn_sidecar_from_filesystem_store(tmp_path):
    store = FilesystemBlobStore(str(tmp_path))
    asyncio.run(store.put(resolve("u1", "s1", ""), b"<p>x</p>", "text/html"))
    (tmp_path / "meta" / "sites" / "u1" / "s1" / "index.html").write_text('{"content_ty')
    gateway = SiteGateway(store)

    response = serve(gateway, "/u1/s1")

    assert response.status_code == 503
