"""Integration tests for promptrelay.api.main — FastAPI endpoints.

All tests use the FastAPI TestClient with the orchestrator wired to the fake
Workers AI backend, so no network access occurs.  Tests cover:

- ``OPTIONS`` on any path — CORS preflight.
- ``POST /analyze`` — element-map extraction and the parseError flag.
- ``POST /enrich`` — single-pass and two-pass enrichment.
- ``POST /`` (and any other POST path) — image generation.
- Non-POST methods — 405.
- The 500 error envelope for service failures and malformed bodies.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# CORS and method handling.
# ---------------------------------------------------------------------------


class TestPreflight:
    """Test OPTIONS handling."""

    def test_options_returns_cors_headers(self, test_client):
        resp = test_client.options("/anything")
        assert resp.status_code == 200
        assert resp.content == b""
        assert resp.headers["access-control-allow-origin"] == "*"
        assert resp.headers["access-control-allow-methods"] == "POST, OPTIONS"
        assert resp.headers["access-control-allow-headers"] == "Content-Type"

    def test_options_on_root(self, test_client):
        resp = test_client.options("/")
        assert resp.status_code == 200

    def test_browser_preflight(self, test_client):
        """A browser preflight gets the same static answer as any OPTIONS."""
        resp = test_client.options(
            "/enrich",
            headers={
                "Origin": "https://example.org",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )
        assert resp.status_code == 200
        assert resp.content == b""
        assert resp.headers["access-control-allow-origin"] == "*"
        assert resp.headers["access-control-allow-methods"] == "POST, OPTIONS"
        assert resp.headers["access-control-allow-headers"] == "Content-Type"
        assert "access-control-max-age" not in resp.headers

    def test_browser_preflight_with_unlisted_header(self, test_client):
        """Requesting a header outside the policy still gets the static 200."""
        resp = test_client.options(
            "/",
            headers={
                "Origin": "https://example.org",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Authorization",
            },
        )
        assert resp.status_code == 200
        assert resp.content == b""
        assert resp.headers["access-control-allow-headers"] == "Content-Type"

    def test_post_with_origin_gets_allow_origin(self, test_client):
        """Actual responses carry the allow-origin header on their own."""
        resp = test_client.post(
            "/",
            json={"prompt": "A happy rabbit."},
            headers={"Origin": "https://example.org"},
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"


class TestMethodNotAllowed:
    """Every method other than POST and OPTIONS should get 405."""

    def test_get_root(self, test_client, fake_backend):
        resp = test_client.get("/")
        assert resp.status_code == 405
        assert resp.text == "Method not allowed"
        assert fake_backend.requests == []

    def test_get_known_route(self, test_client):
        assert test_client.get("/analyze").status_code == 405

    def test_put_with_body(self, test_client, fake_backend):
        resp = test_client.put("/enrich", content=b"not even json")
        assert resp.status_code == 405
        assert fake_backend.requests == []

    def test_delete_unknown_path(self, test_client):
        assert test_client.delete("/some/where").status_code == 405

    def test_docs_not_served(self, test_client):
        assert test_client.get("/docs").status_code == 405


# ---------------------------------------------------------------------------
# Analyze endpoint tests.
# ---------------------------------------------------------------------------


class TestAnalyze:
    """Test POST /analyze."""

    def test_lapin_round_trip(self, test_client, fake_backend, lapin_reply):
        fake_backend.chat_reply = lapin_reply
        resp = test_client.post("/analyze", json={"prompt": "un lapin"})
        assert resp.status_code == 200
        assert resp.json() == {
            "analysis": {
                "subjects": ["rabbit"],
                "setting": None,
                "activity": None,
                "clothing": None,
                "objects": None,
                "decor": None,
            }
        }
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_parse_error_flag(self, test_client, fake_backend):
        fake_backend.chat_reply = "I could not find anything."
        resp = test_client.post("/analyze", json={"prompt": "un lapin"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["parseError"] is True
        assert data["analysis"]["subjects"] == ["un lapin"]

    def test_service_failure(self, test_client, fake_backend):
        fake_backend.status_code = 500
        resp = test_client.post("/analyze", json={"prompt": "un lapin"})
        assert resp.status_code == 500
        assert "error" in resp.json()


# ---------------------------------------------------------------------------
# Enrich endpoint tests.
# ---------------------------------------------------------------------------


class TestEnrich:
    """Test POST /enrich."""

    def test_single_pass(self, test_client, fake_backend):
        fake_backend.chat_reply = "A curious cat on a windowsill."
        resp = test_client.post("/enrich", json={"prompt": "un chat"})
        assert resp.status_code == 200
        assert resp.json() == {"enriched": "A curious cat on a windowsill."}

    def test_system_prompt_override(self, test_client, fake_backend):
        test_client.post("/enrich", json={"prompt": "un chat", "systemPrompt": "Be terse."})
        assert fake_backend.last_json["messages"][0]["content"] == "Be terse."

    def test_two_pass(self, test_client, fake_backend):
        fake_backend.chat_reply = "  A happy rabbit.  "
        resp = test_client.post(
            "/enrich",
            json={"structure": {"subjects": ["rabbit"], "setting": None}},
        )
        assert resp.json() == {"enriched": "A happy rabbit."}
        assert "rabbit" in fake_backend.last_json["messages"][1]["content"]

    def test_empty_body_object(self, test_client, fake_backend):
        resp = test_client.post("/enrich", json={})
        assert resp.status_code == 500
        assert "required" in resp.json()["error"]
        assert fake_backend.requests == []


# ---------------------------------------------------------------------------
# Generate endpoint tests.
# ---------------------------------------------------------------------------


class TestGenerate:
    """Test POST / — image generation."""

    def test_returns_png_bytes(self, test_client, png_bytes):
        resp = test_client.post("/", json={"prompt": "A happy rabbit."})
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/png"
        assert resp.headers["access-control-allow-origin"] == "*"
        assert resp.content == png_bytes

    def test_default_steps(self, test_client, fake_backend):
        test_client.post("/", json={"prompt": "A happy rabbit."})
        assert fake_backend.last_json["num_steps"] == 6

    def test_explicit_steps(self, test_client, fake_backend):
        test_client.post("/", json={"prompt": "A happy rabbit.", "steps": 8})
        assert fake_backend.last_json["num_steps"] == 8

    def test_any_other_post_path_generates(self, test_client, png_bytes):
        resp = test_client.post("/generate/image", json={"prompt": "A happy rabbit."})
        assert resp.status_code == 200
        assert resp.content == png_bytes

    def test_enrich_first(self, test_client, fake_backend):
        fake_backend.chat_reply = "A curious cat on a windowsill."
        resp = test_client.post("/", json={"prompt": "un chat", "enrich": True})
        assert resp.status_code == 200
        assert len(fake_backend.requests) == 2
        assert fake_backend.last_json["prompt"] == "A curious cat on a windowsill."

    def test_service_failure_envelope(self, test_client, fake_backend):
        fake_backend.status_code = 503
        resp = test_client.post("/", json={"prompt": "A happy rabbit."})
        assert resp.status_code == 500
        assert resp.headers["content-type"] == "application/json"
        assert "HTTP 503" in resp.json()["error"]


# ---------------------------------------------------------------------------
# Malformed request bodies.
# ---------------------------------------------------------------------------


class TestMalformedBodies:
    """Malformed input should take the generic 500 error path."""

    def test_invalid_json(self, test_client, fake_backend):
        resp = test_client.post(
            "/",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 500
        assert resp.json()["error"].startswith("Invalid request")
        assert fake_backend.requests == []

    def test_missing_prompt(self, test_client):
        resp = test_client.post("/analyze", json={})
        assert resp.status_code == 500
        assert "prompt" in resp.json()["error"]

    def test_zero_steps(self, test_client, fake_backend):
        resp = test_client.post("/", json={"prompt": "A cat.", "steps": 0})
        assert resp.status_code == 500
        assert "steps" in resp.json()["error"]
        assert fake_backend.requests == []
