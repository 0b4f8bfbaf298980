"""
History ledger (append-only, newest first, confidence bounds) and the
cell format sidecar (merge rule, empty-row removal, independence from
values).
"""

import pytest

from unidash.core.exceptions import ValidationError
from unidash.models import db
from unidash.models.sheet import CellFormat, CellValue, ValueHistory
from unidash.services import cell_format_service, history_service


API = "/api/v1"


def _post(client, url, data=None):
    return client.post(API + url, json=data or {})


def _get(client, url):
    return client.get(API + url)


def _delete(client, url):
    return client.delete(API + url)


# ── History ──────────────────────────────────────────────────────────────

class TestHistory:
    def test_post_and_list_newest_first(self, client, university, empty_view):
        uid, vid = university["id"], empty_view["id"]
        for i in range(3):
            res = _post(client, "/history", {
                "university_id": uid, "column_key": "fee", "view_id": vid,
                "old_value": str(i), "new_value": str(i + 1),
                "source": "https://example.edu", "confidence": 0.5,
            })
            assert res.status_code == 201

        rows = _get(client, f"/universities/{uid}/history").get_json()
        assert [r["new_value"] for r in rows] == ["3", "2", "1"]

    def test_filters(self, client, university, empty_view):
        uid, vid = university["id"], empty_view["id"]
        history_service.record_change(uid, "a", vid, None, "1")
        history_service.record_change(uid, "b", vid, None, "2")
        history_service.record_change(uid, "a", None, None, "3")

        assert len(history_service.list_history(uid, column_key="a")) == 2
        assert len(history_service.list_history(uid, view_id=vid)) == 2
        assert len(history_service.list_history(uid, view_id=vid, column_key="a")) == 1

    @pytest.mark.parametrize("confidence", [-0.1, 1.5, "high"])
    def test_confidence_bounds(self, university, confidence):
        with pytest.raises(ValidationError):
            history_service.record_change(university["id"], "k", None, None, "v", confidence=confidence)

    def test_confidence_out_of_range_via_api(self, client, university):
        res = _post(client, "/history", {
            "university_id": university["id"], "column_key": "k", "confidence": 2,
        })
        assert res.status_code == 422

    def test_history_for_unknown_university_404(self, client):
        assert _get(client, "/universities/404/history").status_code == 404

    def test_unknown_view_404(self, client, university):
        res = _post(client, "/history", {
            "university_id": university["id"], "column_key": "k", "view_id": 9999,
        })
        assert res.status_code == 404
        assert ValueHistory.query.count() == 0

    def test_history_rows_are_never_rewritten(self, client, university, empty_view):
        uid, vid = university["id"], empty_view["id"]
        first = history_service.record_change(uid, "k", vid, None, "1", source="AI")
        history_service.record_change(uid, "k", vid, "1", "2", source="AI")
        again = db.session.get(ValueHistory, first["id"])
        assert again.new_value == "1"
        assert ValueHistory.query.count() == 2


# ── Cell formats ─────────────────────────────────────────────────────────

def _fmt(uid, vid, **attrs):
    return {"university_id": uid, "column_key": "fee", "view_id": vid, **attrs}


class TestCellFormats:
    def test_set_and_read_map(self, client, university, empty_view):
        uid, vid = university["id"], empty_view["id"]
        res = _post(client, "/cell-formats", _fmt(uid, vid, backgroundColor="#ffeeaa", bold=True))
        assert res.status_code == 200

        formats = _get(client, f"/cell-formats/{vid}").get_json()
        attrs = formats[f"{uid}_fee"]
        assert attrs["backgroundColor"] == "#ffeeaa"
        assert attrs["bold"] is True
        assert attrs["italic"] is False
        assert attrs["fontSize"] is None

    def test_omitted_keys_are_kept(self, client, university, empty_view):
        uid, vid = university["id"], empty_view["id"]
        _post(client, "/cell-formats", _fmt(uid, vid, bold=True))
        body = _post(client, "/cell-formats", _fmt(uid, vid, textColor="#000")).get_json()
        assert body["format"]["bold"] is True
        assert body["format"]["textColor"] == "#000"

    def test_null_clears_attribute(self, client, university, empty_view):
        uid, vid = university["id"], empty_view["id"]
        _post(client, "/cell-formats", _fmt(uid, vid, bold=True, text_color="#123"))
        body = _post(client, "/cell-formats", _fmt(uid, vid, text_color=None)).get_json()
        assert body["format"]["textColor"] is None
        assert body["format"]["bold"] is True

    def test_clearing_everything_removes_row(self, client, university, empty_view):
        uid, vid = university["id"], empty_view["id"]
        _post(client, "/cell-formats", _fmt(uid, vid, bold=True))
        body = _post(client, "/cell-formats", _fmt(uid, vid, bold=False)).get_json()
        assert body["format"] is None
        assert CellFormat.query.count() == 0

    def test_empty_format_on_fresh_cell_creates_nothing(self, university, empty_view):
        result = cell_format_service.set_format(university["id"], "fee", empty_view["id"], {"italic": False})
        assert result is None
        assert CellFormat.query.count() == 0

    def test_unknown_attribute_rejected(self, client, university, empty_view):
        res = _post(client, "/cell-formats", _fmt(university["id"], empty_view["id"], blink=True))
        assert res.status_code == 422

    @pytest.mark.parametrize("flag", ["false", 1, "yes"])
    def test_boolean_attributes_must_be_booleans(self, client, university, empty_view, flag):
        res = _post(client, "/cell-formats", _fmt(university["id"], empty_view["id"], bold=flag))
        assert res.status_code == 422
        assert res.get_json()["details"] == {"bold": "must be a boolean"}
        assert CellFormat.query.count() == 0

    def test_one_row_per_cell(self, client, university, empty_view):
        uid, vid = university["id"], empty_view["id"]
        _post(client, "/cell-formats", _fmt(uid, vid, bold=True))
        _post(client, "/cell-formats", _fmt(uid, vid, italic=True))
        assert CellFormat.query.count() == 1

    def test_formats_never_touch_values(self, client, university, empty_view):
        uid, vid = university["id"], empty_view["id"]
        _post(client, "/values", {"university_id": uid, "column_key": "fee", "view_id": vid, "value": "10"})
        _post(client, "/cell-formats", _fmt(uid, vid, bold=True))
        _delete(client, f"/cell-formats?university_id={uid}&column_key=fee&view_id={vid}")

        assert CellValue.query.filter_by(column_key="fee").one().value == "10"
        assert ValueHistory.query.count() == 0

    def test_clear_is_idempotent(self, client, university, empty_view):
        uid, vid = university["id"], empty_view["id"]
        qs = f"/cell-formats?university_id={uid}&column_key=fee&view_id={vid}"
        _post(client, "/cell-formats", _fmt(uid, vid, underline=True))
        assert _delete(client, qs).get_json() == {"deleted": True}
        assert _delete(client, qs).get_json() == {"deleted": False}
