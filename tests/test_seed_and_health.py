"""Seeding the General view, health probes and the shared error envelope."""

from unidash.models.sheet import CellValue, SheetColumn, University, View
from unidash.services import seed_service


API = "/api/v1"


class TestSeed:
    def test_seed_creates_general_view(self):
        summary = seed_service.seed_database()
        assert summary["universities"] == 30
        assert summary["columns_created"] == 53
        assert View.query.filter_by(name="General").count() == 1
        assert SheetColumn.query.filter_by(view_id=summary["view_id"]).count() == 53

    def test_seed_is_idempotent(self):
        first = seed_service.seed_database()
        second = seed_service.seed_database()
        assert second["view_id"] == first["view_id"]
        assert second["columns_created"] == 0
        assert University.query.count() == 30
        assert CellValue.query.filter_by(view_id=first["view_id"], column_key="nr").count() == 30

    def test_basic_values_written(self):
        vid = seed_service.seed_database()["view_id"]
        mit = University.query.filter_by(name="MIT").one()
        cells = {
            c.column_key: c.value
            for c in CellValue.query.filter_by(university_id=mit.id, view_id=vid)
        }
        assert cells["uni_name"] == "MIT"
        assert cells["cntr"] == "US"
        assert cells["city"] == "Cambridge"
        assert cells["web"] == "https://www.mit.edu"

    def test_seed_restores_deleted_columns_only(self):
        vid = seed_service.seed_database()["view_id"]
        SheetColumn.query.filter_by(view_id=vid, key="web").delete()
        assert seed_service.seed_database()["columns_created"] == 1

    def test_seed_endpoint(self, client):
        res = client.post(f"{API}/seed")
        assert res.status_code == 200
        assert res.get_json()["universities"] == 30

    def test_seeded_grid_composes(self, client):
        vid = client.post(f"{API}/seed").get_json()["view_id"]
        body = client.get(f"{API}/views/{vid}/data").get_json()
        assert len(body["data"]) == 30
        assert len(body["columns"]) == 53


class TestHealth:
    def test_ready(self, client):
        res = client.get(f"{API}/health")
        assert res.status_code == 200
        assert res.get_json() == {"status": "ok"}

    def test_live(self, client):
        body = client.get(f"{API}/health/live").get_json()
        assert body["status"] == "ok"
        assert body["checks"]["database"]["dialect"] == "sqlite"
        assert body["checks"]["ai"]["mode"] == "stub"

    def test_request_id_header(self, client):
        res = client.get(f"{API}/health", headers={"X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"
        assert "X-Request-Duration-Ms" in res.headers


class TestErrorEnvelope:
    def test_unknown_route(self, client):
        res = client.get(f"{API}/nothing-here")
        assert res.status_code == 404
        assert res.get_json()["error"] == "Not found"

    def test_non_json_body(self, client):
        res = client.post(f"{API}/views", data="name=x", content_type="text/plain")
        assert res.status_code == 400
        assert "JSON object" in res.get_json()["error"]

    def test_method_not_allowed(self, client):
        assert client.patch(f"{API}/views").status_code == 405
