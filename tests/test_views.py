"""
Views API: create (starter columns / copy), rename, delete cascade,
and the composed grid.
"""

from unidash.models.sheet import CellFormat, CellValue, SheetColumn, ValueHistory


API = "/api/v1"


def _post(client, url, data=None):
    return client.post(API + url, json=data or {})


def _get(client, url):
    return client.get(API + url)


def _put(client, url, data=None):
    return client.put(API + url, json=data or {})


def _delete(client, url):
    return client.delete(API + url)


class TestViewCrud:
    def test_create_view_gets_starter_columns(self, client):
        res = _post(client, "/views", {"name": "Masters"})
        assert res.status_code == 201
        vid = res.get_json()["id"]

        cols = _get(client, f"/views/{vid}/columns").get_json()
        assert [c["key"] for c in cols] == ["nr", "uni_name", "cntr", "uni_type", "web"]
        uni_type = cols[3]
        assert uni_type["type"] == "select"
        assert uni_type["select_options"] == ["Public", "Private"]

    def test_starter_columns_are_filled_from_universities(self, client, university):
        vid = _post(client, "/views", {"name": "Masters"}).get_json()["id"]
        row = _get(client, f"/views/{vid}/data").get_json()["data"][0]
        assert row["nr"] == "1"
        assert row["uni_name"] == "MIT"
        assert row["cntr"] == "US"
        assert row["uni_type"] == "Private"
        assert row["web"] == "https://www.mit.edu"

    def test_name_required(self, client):
        res = _post(client, "/views", {})
        assert res.status_code == 400

    def test_blank_name_rejected(self, client):
        res = _post(client, "/views", {"name": "   "})
        assert res.status_code == 422

    def test_non_string_name_rejected(self, client):
        res = _post(client, "/views", {"name": 5})
        assert res.status_code == 422
        assert res.get_json()["details"] == {"name": "must be a string"}

    def test_duplicate_name_rejected(self, client, view):
        res = _post(client, "/views", {"name": "General"})
        assert res.status_code == 422
        assert res.get_json()["details"]["name"] == "duplicate"

    def test_list_views_in_creation_order(self, client):
        _post(client, "/views", {"name": "A"})
        _post(client, "/views", {"name": "B"})
        names = [v["name"] for v in _get(client, "/views").get_json()]
        assert names == ["A", "B"]

    def test_rename(self, client, view):
        res = _put(client, f"/views/{view['id']}", {"name": "Renamed"})
        assert res.status_code == 200
        assert res.get_json()["name"] == "Renamed"

    def test_get_missing_view_404(self, client):
        assert _get(client, "/views/9999").status_code == 404

    def test_delete_missing_view_is_noop(self, client):
        res = _delete(client, "/views/9999")
        assert res.status_code == 200
        assert res.get_json() == {"deleted": False}


class TestCopyView:
    def test_copy_brings_columns_and_non_null_values(self, client, university, view):
        uid, vid = university["id"], view["id"]
        _post(client, f"/views/{vid}/columns", {"key": "tuition", "type": "number"})
        _post(client, "/values", {"university_id": uid, "column_key": "tuition",
                                  "view_id": vid, "value": 57986})
        _post(client, "/values", {"university_id": uid, "column_key": "web",
                                  "view_id": vid, "value": None})

        res = _post(client, "/views", {"name": "Copy", "copy_from_view_id": vid})
        assert res.status_code == 201
        copy_id = res.get_json()["id"]

        source_keys = [c["key"] for c in _get(client, f"/views/{vid}/columns").get_json()]
        copy_keys = [c["key"] for c in _get(client, f"/views/{copy_id}/columns").get_json()]
        assert copy_keys == source_keys

        row = _get(client, f"/views/{copy_id}/data").get_json()["data"][0]
        assert row["tuition"] == "57986"
        assert row["web"] is None
        assert CellValue.query.filter_by(view_id=copy_id, column_key="web").count() == 0

    def test_copy_from_missing_view_404(self, client):
        res = _post(client, "/views", {"name": "Copy", "copy_from_view_id": 4242})
        assert res.status_code == 404


class TestDeleteViewCascade:
    def test_delete_removes_everything_scoped_to_view(self, client, university, view):
        uid, vid = university["id"], view["id"]
        other = _post(client, "/views", {"name": "Other"}).get_json()["id"]
        _post(client, "/cell-formats", {"university_id": uid, "column_key": "web",
                                        "view_id": vid, "bold": True})
        _post(client, "/history", {"university_id": uid, "column_key": "web",
                                   "view_id": vid, "new_value": "x", "source": "AI"})

        res = _delete(client, f"/views/{vid}")
        assert res.get_json() == {"deleted": True}

        assert SheetColumn.query.filter_by(view_id=vid).count() == 0
        assert CellValue.query.filter_by(view_id=vid).count() == 0
        assert CellFormat.query.filter_by(view_id=vid).count() == 0
        assert ValueHistory.query.filter_by(view_id=vid).count() == 0
        # untouched
        assert CellValue.query.filter_by(view_id=other).count() > 0


class TestViewData:
    def test_unknown_view_404(self, client):
        assert _get(client, "/views/77/data").status_code == 404

    def test_unknown_mode_422(self, client, view):
        assert _get(client, f"/views/{view['id']}/data?mode=fancy").status_code == 422

    def test_shape(self, client, university, view):
        body = _get(client, f"/views/{view['id']}/data").get_json()
        assert set(body) == {"view", "universities", "columns", "data"}
        assert body["view"]["name"] == "General"
        assert len(body["data"]) == 1
        assert body["data"][0]["id"] == university["id"]
