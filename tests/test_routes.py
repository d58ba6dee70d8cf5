from types import SimpleNamespace

from fastapi.testclient import TestClient
from openai import OpenAIError

from proxyhost.blob_store import FilesystemBlobStore
from proxyhost.config import Settings
from proxyhost.generator import FALLBACK_HTML, SiteGenerator
from proxyhost.keys import resolve
from proxyhost.main import create_app


def test_root_and_health(client):
    assert client.get("/").json()["name"] == "ProxyHost"

    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["storage_backend"] == "memory"


def test_upload_then_serve(client, headers):
    html = b"<!DOCTYPE html><h1>My site</h1>"

    resp = client.post(
        "/api/upload",
        headers=headers,
        files={"file": ("index.html", html, "text/html")},
        data={"siteName": "my-site"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["siteName"] == "my-site"
    assert body["url"] == f"/site/demo-user/{body['siteId']}/"

    served = client.get(body["url"])
    assert served.status_code == 200
    assert served.content == html
    assert served.headers["content-type"] == "text/html; charset=utf-8"
    assert served.headers["cache-control"] == "public, max-age=300"


def test_upload_issues_fresh_site_ids(client, headers):
    ids = {
        client.post("/api/upload", headers=headers,
                    files={"file": ("index.html", b"<p>x</p>", "text/html")}).json()["siteId"]
        for _ in range(3)
    }
    assert len(ids) == 3


def test_upload_requires_tenant_header(client):
    resp = client.post("/api/upload", files={"file": ("index.html", b"x", "text/html")})

    assert resp.status_code == 401
    assert resp.json()["error"] == "unauthorized"


def test_upload_rejects_tenant_with_slash(client):
    resp = client.post(
        "/api/upload",
        headers={"X-Tenant-Id": "a/b"},
        files={"file": ("index.html", b"x", "text/html")},
    )
    assert resp.status_code == 401


def test_upload_requires_file(client, headers):
    resp = client.post("/api/upload", headers=headers, data={"siteName": "empty"})
    assert resp.status_code == 400

    resp = client.post("/api/upload", headers=headers,
                       files={"file": ("index.html", b"", "text/html")})
    assert resp.status_code == 400


def test_serve_round_trip_for_stored_assets(client, put):
    data = b"body { color: red; }"
    put(resolve("u1", "s1", "css/site.css"), data, "text/css")

    resp = client.get("/site/u1/s1/css/site.css")

    assert resp.status_code == 200
    assert resp.content == data
    assert resp.headers["content-type"] == "text/css; charset=utf-8"


def test_serve_png(client, put):
    put(resolve("u1", "s1", "img/logo.png"), b"\x89PNG", "image/png")

    resp = client.get("/site/u1/s1/img/logo.png")

    assert resp.headers["content-type"] == "image/png"


def test_serve_missing_and_malformed(client):
    missing = client.get("/site/u1/s1/nothing.html")
    assert missing.status_code == 404
    assert missing.text == "Not found"

    malformed = client.get("/site/u1")
    assert malformed.status_code == 400


def test_serve_does_not_need_tenant_header(client, put):
    put(resolve("u1", "s1", ""), b"public", "text/html")

    assert client.get("/site/u1/s1/").text == "public"


def test_generate_site_mock(client, headers):
    resp = client.post("/api/generate-site", headers=headers, json={"prompt": "Bakery <home>"})

    assert resp.status_code == 200
    assert "Bakery &lt;home&gt;" in resp.json()["html"]


def test_generate_site_validation(client, headers):
    assert client.post("/api/generate-site", headers=headers, json={"prompt": ""}).status_code == 422
    assert client.post("/api/generate-site", json={"prompt": "x"}).status_code == 401


def test_generate_site_model_failure(store, headers):
    class FailingGenerator(SiteGenerator):
        def generate(self, prompt):
            raise OpenAIError("model offline")

    app = create_app(settings=Settings(), store=store, generator=FailingGenerator())
    resp = TestClient(app).post("/api/generate-site", headers=headers, json={"prompt": "x"})

    assert resp.status_code == 502


def _fake_client(content):
    message = SimpleNamespace(content=content)
    completion = SimpleNamespace(choices=[SimpleNamespace(message=message)])
    create = lambda **kwargs: completion
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def test_generator_uses_model_reply():
    generator = SiteGenerator(use_mock=False, client=_fake_client("  <html>ok</html>\n"))
    assert generator.generate("anything") == "<html>ok</html>"


def test_generator_falls_back_on_empty_reply():
    generator = SiteGenerator(use_mock=False, client=_fake_client(None))
    assert generator.generate("anything") == FALLBACK_HTML


def test_head_site_object(client, put):
    put(resolve("u1", "s1", "css/site.css"), b"body {}", "text/css")

    resp = client.head("/site/u1/s1/css/site.css")

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "text/css; charset=utf-8"
    assert resp.headers["cache-control"] == "public, max-age=300"

    assert client.head("/site/u1/s1/missing.css").status_code == 404


def test_unauthorized_response_carries_cors_headers(client):
    resp = client.post(
        "/api/upload",
        headers={"Origin": "https://example.com"},
        files={"file": ("index.html", b"x", "text/html")},
    )

    assert resp.status_code == 401
    assert resp.headers["access-control-allow-origin"] == "*"


def test_upload_url_quotes_tenant(client):
    html = b"<p>hash tenant</p>"

    resp = client.post(
        "/api/upload",
        headers={"X-Tenant-Id": "a#b?c"},
        files={"file": ("index.html", html, "text/html")},
    )
    body = resp.json()

    assert body["url"] == f"/site/a%23b%3Fc/{body['siteId']}/"
    assert client.get(body["url"]).content == html


def test_upload_then_serve_on_filesystem(tmp_path, headers):
    store = FilesystemBlobStore(str(tmp_path))
    app = create_app(settings=Settings(), store=store, generator=SiteGenerator(use_mock=True))
    client = TestClient(app)
    html = b"<!DOCTYPE html><h1>On disk</h1>"

    body = client.post("/api/upload", headers=headers,
                       files={"file": ("index.html", html, "text/html")}).json()
    served = client.get(body["url"])

    assert served.status_code == 200
    assert served.content == html
    assert served.headers["content-type"] == "text/html; charset=utf-8"
    assert client.get("/health").json()["storage_backend"] == "filesystem"
