import asyncio
from unittest import mock

from fastapi.testclient import TestClient

from main import create_app
from shortlink_app.exceptions import StorageError


def shorten(client, url="https://www.github.com/", **extra):
    return client.post("/shorten", json={"url": url, **extra})


def clicks_total(client, alias):
    return client.get(f"/analytics/{alias}").json()["clicks_total"]


class TestShorten:
    """POST /shorten"""

    def test_create_short_url(self, client: TestClient):
        response = shorten(client)
        assert response.status_code == 201

        data = response.json()
        assert len(data["alias"]) == 8
        assert data["short"] == f"http://testserver/s/{data['alias']}"

    def test_url_is_trimmed(self, client: TestClient):
        alias = shorten(client, url="  https://www.python.org/  ").json()["alias"]

        response = client.get(f"/s/{alias}", follow_redirects=False)
        assert response.headers["location"] == "https://www.python.org/"

    def test_custom_alias(self, client: TestClient):
        response = shorten(client, custom_alias="docs")
        assert response.status_code == 201
        assert response.json()["alias"] == "docs"

    def test_empty_custom_alias_generates_one(self, client: TestClient):
        response = shorten(client, custom_alias="")
        assert response.status_code == 201
        assert len(response.json()["alias"]) == 8

    def test_duplicate_custom_alias(self, client: TestClient):
        shorten(client, url="https://one.example.com/", custom_alias="dup")
        response = shorten(client, url="https://two.example.com/", custom_alias="dup")

        assert response.status_code == 400
        assert response.json() == {"error": "alias already exists"}

        redirect = client.get("/s/dup", follow_redirects=False)
        assert redirect.headers["location"] == "https://one.example.com/"

    def test_invalid_custom_alias(self, client: TestClient):
        response = shorten(client, custom_alias="no spaces")
        assert response.status_code == 400
        assert response.json() == {"error": "invalid custom alias"}

        assert client.get("/s/no spaces", follow_redirects=False).status_code == 404

    def test_missing_url(self, client: TestClient):
        response = client.post("/shorten", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "url is required"}

    def test_blank_url(self, client: TestClient):
        response = shorten(client, url="   ")
        assert response.status_code == 400
        assert response.json() == {"error": "url is required"}

    def test_invalid_url(self, client: TestClient):
        response = shorten(client, url="not-a-valid-url")
        assert response.status_code == 400
        assert response.json() == {"error": "invalid url format"}

    def test_custom_scheme_url(self, client: TestClient):
        response = shorten(client, url="myapp://open/path", custom_alias="deep")
        assert response.status_code == 201

        redirect = client.get("/s/deep", follow_redirects=False)
        assert redirect.headers["location"] == "myapp://open/path"

    def test_underscore_host(self, client: TestClient):
        response = shorten(client, url="https://sub_domain.example.com/", custom_alias="under")
        assert response.status_code == 201

        redirect = client.get("/s/under", follow_redirects=False)
        assert redirect.headers["location"] == "https://sub_domain.example.com/"

    def test_url_without_host_is_rejected(self, client: TestClient):
        response = shorten(client, url="mailto:someone@example.com")
        assert response.status_code == 400
        assert response.json() == {"error": "invalid url format"}

    def test_relative_url_is_rejected(self, client: TestClient):
        assert shorten(client, url="/just/a/path").status_code == 400

    def test_invalid_json(self, client: TestClient):
        response = client.post(
            "/shorten",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "invalid json"}

    def test_storage_failure_is_generic_500(self, client: TestClient):
        storage = client.app.state.url_service.storage
        with mock.patch.object(storage, "save_url", side_effect=StorageError("connection refused")):
            response = shorten(client)

        assert response.status_code == 500
        assert response.json() == {"error": "internal server error"}

    def test_base_url_setting(self, settings):
        app = create_app(settings.model_copy(update={"base_url": "https://sho.rt/"}))
        with TestClient(app) as client:
            data = shorten(client, custom_alias="abc").json()

        assert data["short"] == "https://sho.rt/s/abc"


class TestRedirect:
    """GET /s/{alias}"""

    def test_redirect(self, client: TestClient, wait_until):
        alias = shorten(client).json()["alias"]

        response = client.get(f"/s/{alias}", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "https://www.github.com/"
        assert wait_until(lambda: clicks_total(client, alias) == 1)

    def test_cached_redirects_are_recorded(self, client: TestClient, wait_until):
        alias = shorten(client).json()["alias"]

        for _ in range(3):
            assert client.get(f"/s/{alias}", follow_redirects=False).status_code == 302

        assert wait_until(lambda: clicks_total(client, alias) == 3)

    def test_click_details(self, client: TestClient, wait_until):
        shorten(client, custom_alias="details")

        client.get(
            "/s/details",
            headers={"User-Agent": "pytest-agent", "X-Forwarded-For": "203.0.113.5, 10.0.0.1"},
            follow_redirects=False,
        )

        assert wait_until(lambda: clicks_total(client, "details") == 1)
        record = client.get("/analytics/details").json()["records"][0]
        assert record["user_agent"] == "pytest-agent"
        assert record["ip_address"] == "203.0.113.5"

    def test_client_ip_without_forwarded_header(self, client: TestClient, wait_until):
        shorten(client, custom_alias="direct")

        client.get("/s/direct", follow_redirects=False)

        assert wait_until(lambda: clicks_total(client, "direct") == 1)
        record = client.get("/analytics/direct").json()["records"][0]
        assert record["ip_address"] == "testclient"

    def test_long_forwarded_address_is_recorded(self, client: TestClient, wait_until):
        shorten(client, custom_alias="spoofed")
        forged = "x" * 200

        client.get("/s/spoofed", headers={"X-Forwarded-For": forged}, follow_redirects=False)

        assert wait_until(lambda: clicks_total(client, "spoofed") == 1)
        record = client.get("/analytics/spoofed").json()["records"][0]
        assert record["ip_address"] == forged

    def test_unknown_alias(self, client: TestClient):
        response = client.get("/s/nonexistent", follow_redirects=False)

        assert response.status_code == 404
        assert response.json() == {"error": "url not found"}
        assert client.app.state.click_recorder.queue.qsize() == 0
        assert clicks_total(client, "nonexistent") == 0

    def test_empty_alias(self, client: TestClient):
        response = client.get("/s/", follow_redirects=False)

        assert response.status_code == 400
        assert response.json() == {"error": "alias is required"}


class TestAnalytics:
    """GET /analytics/{alias}"""

    def test_no_clicks(self, client: TestClient):
        shorten(client, custom_alias="quiet")

        response = client.get("/analytics/quiet")

        assert response.status_code == 200
        assert response.json() == {
            "alias": "quiet",
            "clicks_total": 0,
            "records": [],
            "by_day": [],
            "by_month": [],
            "by_agent": [],
        }

    def test_group_counts_sum_to_total(self, client: TestClient, wait_until):
        shorten(client, custom_alias="busy")
        for agent in ["firefox", "chrome", "firefox", "curl"]:
            client.get("/s/busy", headers={"User-Agent": agent}, follow_redirects=False)

        assert wait_until(lambda: clicks_total(client, "busy") == 4)
        data = client.get("/analytics/busy").json()

        assert len(data["records"]) == 4
        assert sum(d["count"] for d in data["by_day"]) == 4
        assert sum(m["count"] for m in data["by_month"]) == 4
        assert data["by_agent"] == [
            {"user_agent": "firefox", "count": 2},
            {"user_agent": "curl", "count": 1},
            {"user_agent": "chrome", "count": 1},
        ]

    def test_empty_alias(self, client: TestClient):
        response = client.get("/analytics/")

        assert response.status_code == 400
        assert response.json() == {"error": "alias is required"}


class TestServiceEndpoints:
    def test_root(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["version"] == "1.0.0"

    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_request_id_header(self, client: TestClient):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    def test_slow_request_times_out(self, settings):
        app = create_app(settings.model_copy(update={"server_timeout": 0.2}))

        @app.get("/slow")
        async def slow():
            await asyncio.sleep(2)
            return {"status": "done"}

        with TestClient(app) as client:
            response = client.get("/slow")

        assert response.status_code == 503
        assert response.json() == {"error": "request timeout"}
