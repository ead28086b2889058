"""Tests for the metrics server HTTP API."""

import gzip
import json

import pytest
from fastapi.testclient import TestClient

from runmetrics.central import create_app


class TestUpdateAndRead:
    def test_gauge_round_trip(self, client):
        response = client.post("/update/gauge/temperature/23.5")
        assert response.status_code == 200
        assert response.content == b""

        response = client.get("/value/gauge/temperature")
        assert response.status_code == 200
        assert response.text == "23.5"
        assert response.headers["content-type"].startswith("text/plain")

    def test_counter_accumulates(self, client):
        assert client.post("/update/counter/requests/100").status_code == 200
        assert client.post("/update/counter/requests/50").status_code == 200

        response = client.get("/value/counter/requests")
        assert response.status_code == 200
        assert response.text == "150"

    def test_gauge_is_replaced(self, client):
        client.post("/update/gauge/t/23.5")
        client.post("/update/gauge/t/25")
        assert client.get("/value/gauge/t").text == "25"

    def test_shortest_float_form(self, client):
        client.post("/update/gauge/x/1.50000")
        assert client.get("/value/gauge/x").text == "1.5"

    def test_updates_reach_the_store(self, client, store):
        client.post("/update/gauge/Alloc/1024")
        client.post("/update/counter/PollCount/3")
        assert store.get_gauge("Alloc") == (1024.0, True)
        assert store.get_counter("PollCount") == (3, True)

    def test_trailing_slash_tolerated(self, client):
        assert client.post("/update/gauge/t/1/").status_code == 200
        assert client.get("/value/gauge/t/").text == "1"

    def test_percent_encoded_name(self, client, store):
        assert client.post("/update/gauge/my%20metric/2").status_code == 200
        assert store.get_gauge("my metric") == (2.0, True)


class TestValidation:
    @pytest.mark.parametrize("method, path, status", [
        ("post", "/update/invalid/x/1", 400),
        ("post", "/update/gauge//1", 404),
        ("post", "/update/invalid//1", 400),
        ("post", "/update/counter//abc", 404),
        ("post", "/update/counter/x/abc", 400),
        ("post", "/update/counter/x/1.5", 400),
        ("post", "/update/gauge/x/nan", 400),
        ("post", "/update/gauge/x/", 404),
        ("get", "/update/gauge/x/1", 405),
    ])
    def test_rejected_requests(self, client, method, path, status):
        response = getattr(client, method)(path)
        assert response.status_code == status

    def test_type_checked_before_value(self, client):
        response = client.post("/update/bogus/x/abc")
        assert response.status_code == 400
        assert "type" in response.json()["detail"]

    def test_rejected_update_stores_nothing(self, client, store):
        client.post("/update/counter/x/abc")
        assert store.list_counters() == {}

    def test_unknown_metric(self, client):
        assert client.get("/value/gauge/missing").status_code == 404

    def test_kind_mismatch_is_not_found(self, client):
        client.post("/update/gauge/x/1")
        assert client.get("/value/counter/x").status_code == 404

    def test_invalid_read_type(self, client):
        assert client.get("/value/histogram/x").status_code == 400


class TestDashboard:
    def test_lists_gauges_and_counters(self, client):
        client.post("/update/gauge/Alloc/1.5")
        client.post("/update/counter/PollCount/4")

        response = client.get("/")
        assert response.status_code == 200
        assert response.headers["content-type"] == "text/html; charset=utf-8"
        assert "Gauge Metrics (1)" in response.text
        assert "Counter Metrics (1)" in response.text
        assert "Alloc" in response.text and "1.5" in response.text
        assert "PollCount" in response.text

    def test_empty_store(self, client):
        response = client.get("/")
        assert "No gauge metrics available" in response.text
        assert "No counter metrics available" in response.text

    def test_names_are_escaped(self, client):
        client.post("/update/gauge/%3Cb%3E/1")
        assert "&lt;b&gt;" in client.get("/").text

    def test_large_page_is_gzipped(self, client):
        for i in range(60):
            client.post(f"/update/gauge/metric_{i}/{i}")
        response = client.get("/", headers={"Accept-Encoding": "gzip"})
        assert response.headers.get("content-encoding") == "gzip"
        assert "metric_59" in response.text


class TestJSONApi:
    def test_update_gauge(self, client, store):
        response = client.post("/update", json={"id": "t", "type": "gauge", "value": 23.5})
        assert response.status_code == 200
        assert response.json() == {"id": "t", "type": "gauge", "value": 23.5}
        assert store.get_gauge("t") == (23.5, True)

    def test_update_counter_returns_total(self, client):
        client.post("/update", json={"id": "c", "type": "counter", "delta": 5})
        response = client.post("/update", json={"id": "c", "type": "counter", "delta": 7})
        assert response.json() == {"id": "c", "type": "counter", "delta": 12}

    def test_gzip_request_body(self, client, store):
        body = gzip.compress(json.dumps({"id": "c", "type": "counter", "delta": 2}).encode())
        response = client.post(
            "/update",
            content=body,
            headers={"Content-Type": "application/json", "Content-Encoding": "gzip"},
        )
        assert response.status_code == 200
        assert store.get_counter("c") == (2, True)

    @pytest.mark.parametrize("payload", [
        {"id": "t", "type": "gauge"},
        {"id": "c", "type": "counter", "value": 1.0},
        {"id": "", "type": "gauge", "value": 1.0},
        {"id": "x", "type": "summary", "value": 1.0},
        {"type": "gauge", "value": 1.0},
    ])
    def test_invalid_payloads(self, client, payload):
        assert client.post("/update", json=payload).status_code == 400

    @pytest.mark.parametrize("path", ["/update", "/value"])
    def test_requires_json_content_type(self, client, path):
        body = json.dumps({"id": "t", "type": "gauge", "value": 1.0})
        response = client.post(path, content=body, headers={"Content-Type": "text/plain"})
        assert response.status_code == 400

    def test_malformed_json(self, client):
        response = client.post("/update", content=b"{not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 400

    def test_value_lookup(self, client):
        client.post("/update/gauge/t/1.5")
        client.post("/update/counter/c/3")

        assert client.post("/value", json={"id": "t", "type": "gauge"}).json() == {
            "id": "t", "type": "gauge", "value": 1.5,
        }
        assert client.post("/value", json={"id": "c", "type": "counter"}).json() == {
            "id": "c", "type": "counter", "delta": 3,
        }
        assert client.post("/value", json={"id": "nope", "type": "gauge"}).status_code == 404


class TestServiceEndpoints:
    def test_ping(self, client):
        response = client.get("/ping")
        assert response.status_code == 200
        assert response.text == "pong"

    def test_health(self, client):
        client.post("/update/gauge/a/1")
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["metrics"] == {"gauges": 1, "counters": 0}


class BrokenStore:
    def list_gauges(self):
        raise RuntimeError("lock invariant violated")

    def list_counters(self):
        return {}

    def stats(self):
        return {"gauges": 0, "counters": 0}


def test_internal_errors_are_generic():
    client = TestClient(create_app(BrokenStore()), raise_server_exceptions=False)
    response = client.get("/")
    assert response.status_code == 500
    assert "lock invariant" not in response.text


def test_lifespan_runs(store):
    with TestClient(create_app(store)) as client:
        assert client.get("/ping").status_code == 200
