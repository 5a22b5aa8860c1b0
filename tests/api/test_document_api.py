"""Tests for whole-document endpoints."""

from __future__ import annotations

from tests.factories import make_sample_document


class TestHealth:
    async def test_counts(self, client):
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert (body["routes"], body["user_airports"], body["user_waypoints"]) == (2, 2, 3)


class TestDocumentAPI:
    async def test_get_document(self, client, store):
        resp = await client.get("/api/document")
        assert resp.status_code == 200
        body = resp.json()
        assert body["active_route_id"] == store.active_route_id
        assert [r["route_id"] for r in body["routes"]] == ["ESSA-ESG", "BROMMA"]
        assert body["routes"][1]["points"][0] == {"kind": "systemAirport", "ref_id": "ESSB"}

    async def test_merge_same_document_adds_nothing(self, client):
        payload = make_sample_document().to_dict()
        resp = await client.post("/api/document/merge", json=payload)
        assert resp.status_code == 200
        assert resp.json()["routes_added"] == 0

    async def test_merge_new_route(self, client):
        payload = make_sample_document().to_dict()
        payload["routes"] = [payload["routes"][1] | {"name": "Bromma return"}]
        resp = await client.post("/api/document/merge", json=payload)
        body = resp.json()
        assert body["routes_added"] == 1
        assert body["document"]["routes"][-1]["route_id"] == "BROMMARE"

    async def test_merge_invalid_document(self, client):
        resp = await client.post("/api/document/merge", json={"routes": [{"route_id": "bad id!"}]})
        assert resp.status_code == 422

    async def test_set_active_route(self, client, store):
        target = store.routes[1].id
        resp = await client.put("/api/document/active-route", json={"route_id": target})
        assert resp.status_code == 200
        assert store.active_route_id == target

    async def test_set_unknown_active_route(self, client):
        resp = await client.put("/api/document/active-route", json={"route_id": "nope"})
        assert resp.status_code == 404

    async def test_clear_active_route(self, client, store):
        resp = await client.put("/api/document/active-route", json={"route_id": None})
        assert resp.status_code == 200
        assert store.active_route_id is None
