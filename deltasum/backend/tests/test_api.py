"""
tests/test_api.py

FastAPI route tests using TestClient (synchronous).
A plain asyncio.Queue stands in for the pipeline input queue.
"""

from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from deltasum.backend.api.main import create_app, set_input_queue, set_pipeline_stats
from deltasum.backend.metrics import METRICS
from deltasum.backend.models import Sample


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def queue():
    q: asyncio.Queue = asyncio.Queue(maxsize=3)
    set_input_queue(q)
    set_pipeline_stats({
        "aggregator": {"samples_ingested": 7, "sum_series": 2},
        "runner": {"samples_processed": 7, "windows_flushed": 1},
    })
    METRICS.reset_all()
    yield q
    set_input_queue(None)
    set_pipeline_stats({})


@pytest.fixture
def client(queue):
    with TestClient(create_app()) as c:
        yield c


def body(*samples) -> dict:
    return {"samples": list(samples)}


# ---------------------------------------------------------------------------
# POST /api/samples
# ---------------------------------------------------------------------------

class TestPostSamples:

    def test_queues_samples(self, client, queue):
        resp = client.post("/api/samples", json=body(
            {"name": "m1", "tags": {"foo": "bar"}, "fields": {"value": 1.0}, "timestamp": 100.0},
            {"name": "m1", "tags": {"foo": "bar"}, "fields": {"value": 2}, "timestamp": 101.0},
        ))
        assert resp.status_code == 202
        assert resp.json() == {"queued": 2, "dropped": 0}
        first = queue.get_nowait()
        assert isinstance(first, Sample)
        assert first.tags == {"foo": "bar"}
        assert first.fields == {"value": 1.0}
        assert first.timestamp == 100.0
        assert queue.get_nowait().fields == {"value": 2}
        assert METRICS.value("samples_received") == 2

    def test_missing_timestamp_uses_receive_time(self, client, queue):
        client.post("/api/samples", json=body({"name": "m1", "fields": {"value": 1}}))
        assert queue.get_nowait().timestamp > 0

    def test_odd_fields_are_passed_through(self, client, queue):
        """Field validation belongs to the aggregator, not the API."""
        resp = client.post("/api/samples", json=body({"name": "m1", "fields": {"count": "x"}}))
        assert resp.status_code == 202
        assert queue.get_nowait().fields == {"count": "x"}

    def test_missing_name_is_rejected(self, client):
        resp = client.post("/api/samples", json=body({"fields": {"value": 1}}))
        assert resp.status_code == 422

    def test_non_string_tag_values_are_rejected(self, client):
        resp = client.post("/api/samples", json=body(
            {"name": "m1", "tags": {"foo": {"nested": 1}}, "fields": {"value": 1}}
        ))
        assert resp.status_code == 422

    def test_full_queue_drops_oldest(self, client, queue):
        resp = client.post("/api/samples", json=body(
            *[{"name": "m1", "fields": {"value": i}} for i in range(5)]
        ))
        assert resp.json() == {"queued": 5, "dropped": 2}
        assert queue.qsize() == 3
        assert queue.get_nowait().fields == {"value": 2}
        assert METRICS.value("input_dropped") == 2

    def test_pipeline_not_running(self, client):
        set_input_queue(None)
        resp = client.post("/api/samples", json=body({"name": "m1", "fields": {"value": 1}}))
        assert resp.status_code == 503


# ---------------------------------------------------------------------------
# GET /api/stats, /health
# ---------------------------------------------------------------------------

class TestStats:

    def test_returns_live_counters(self, client):
        resp = client.get("/api/stats")
        assert resp.status_code == 200
        data = resp.json()
        assert data["aggregator"]["samples_ingested"] == 7
        assert data["runner"]["windows_flushed"] == 1
        assert set(data["pipeline"]) == {
            "samples_received", "input_dropped", "output_dropped", "samples_emitted",
        }

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "pipeline_running": True}
