"""
AI refresh: gateway configuration, response normalisation, transports,
and applying results to a view with history and per-university commits.
"""

import pytest
import requests

from unidash.ai import refresh
from unidash.ai.gateway import (
    AIGateway,
    AIRefreshConfig,
    AITransport,
    DirectTransport,
    ProxyTransport,
    StubTransport,
    build_user_prompt,
    normalize_results,
)
from unidash.core.exceptions import (
    AIConfigError,
    AIProviderError,
    AIResponseError,
    NotFoundError,
    ValidationError,
)
from unidash.models.sheet import CellValue, ValueHistory
from unidash.services import column_service, value_service


API = "/api/v1"


# ── Fakes ────────────────────────────────────────────────────────────────

class FixedTransport(AITransport):
    """Returns the same payload for every university and records calls."""

    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    def complete(self, university, columns):
        self.calls.append((university["name"], [c["key"] for c in columns]))
        return self.payload


class FailOnTransport(AITransport):
    """Answers every university except ``fail_name``, which raises."""

    def __init__(self, fail_name, payload):
        self.fail_name = fail_name
        self.payload = payload
        self.calls = []

    def complete(self, university, columns):
        self.calls.append(university["name"])
        if university["name"] == self.fail_name:
            raise AIProviderError("upstream 500")
        return self.payload


class FakeResponse:
    def __init__(self, text, status=200):
        self.text = text
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.posted = []

    def post(self, url, json=None, timeout=None):
        self.posted.append((url, json, timeout))
        if self.exc:
            raise self.exc
        return self.response


def _stub_gateway():
    return AIGateway(AIRefreshConfig())


def _gateway(transport):
    return AIGateway(AIRefreshConfig(), transport=transport)


def _uni(client, name, **extra):
    res = client.post(f"{API}/universities", json={"name": name, **extra})
    assert res.status_code == 201
    return res.get_json()["id"]


# ── Config ───────────────────────────────────────────────────────────────

class TestConfig:
    def test_default_is_stub(self):
        gw = _stub_gateway()
        assert isinstance(gw.transport, StubTransport)

    def test_unknown_mode(self):
        with pytest.raises(AIConfigError):
            AIRefreshConfig(mode="magic")

    def test_direct_requires_key(self):
        with pytest.raises(AIConfigError):
            AIRefreshConfig(mode="direct", api_key="")

    def test_proxy_requires_url(self):
        with pytest.raises(AIConfigError):
            AIRefreshConfig(mode="proxy")

    def test_transport_selection(self):
        direct = AIGateway(AIRefreshConfig(mode="direct", api_key="sk-test"))
        proxy = AIGateway(AIRefreshConfig(mode="proxy", proxy_url="http://proxy/api/v1/ai/generate"))
        assert isinstance(direct.transport, DirectTransport)
        assert isinstance(proxy.transport, ProxyTransport)

    def test_from_app_config(self, app):
        cfg = AIRefreshConfig.from_app_config(app.config)
        assert cfg.mode == "stub"
        assert cfg.timeout == app.config["AI_TIMEOUT"]

    def test_config_is_immutable(self):
        cfg = AIRefreshConfig()
        with pytest.raises(AttributeError):
            cfg.mode = "direct"

    def test_gateway_cached_on_app(self, app):
        first = refresh.get_gateway()
        assert refresh.get_gateway() is first
        assert app.extensions["ai_gateway"] is first


# ── Normalisation ────────────────────────────────────────────────────────

class TestNormalizeResults:
    def test_wrapped_results(self):
        out = normalize_results({"results": [
            {"columnKey": "fee", "value": 100, "source": "site", "confidence": 0.9, "notes": None},
        ]})
        assert out[0].column_key == "fee"
        assert out[0].value == 100
        assert out[0].confidence == 0.9

    def test_bare_list_and_single_object(self):
        assert len(normalize_results([{"columnKey": "a"}, {"columnKey": "b"}])) == 2
        single = normalize_results({"columnKey": "a", "value": "x"})
        assert single[0].value == "x"

    def test_missing_fields_default(self):
        result = normalize_results([{"columnKey": "a"}])[0]
        assert result.value is None
        assert result.source == ""
        assert result.confidence == 0.0
        assert result.notes is None

    @pytest.mark.parametrize("payload", [
        [{"columnKey": "a", "confidence": 1.2}],
        [{"columnKey": "a", "confidence": "sure"}],
        ["not an object"],
    ])
    def test_bad_results(self, payload):
        with pytest.raises(AIResponseError):
            normalize_results(payload)

    def test_to_dict_is_camel_case(self):
        result = normalize_results([{"columnKey": "a", "value": 1, "confidence": 0.5}])[0]
        assert set(result.to_dict()) == {"columnKey", "value", "source", "confidence", "notes"}


class TestPrompt:
    def test_lists_columns_and_instructions(self):
        prompt = build_user_prompt(
            {"name": "MIT", "country": "US", "website": "https://www.mit.edu"},
            [{"key": "fee", "label": "Tuition", "type": "number",
              "aiInstructions": "USD per year"}],
        )
        assert "University: MIT" in prompt
        assert "Country: US" in prompt
        assert "- Tuition (fee): number - USD per year" in prompt
        assert '"results"' in prompt


# ── Transports ───────────────────────────────────────────────────────────

class TestStubTransport:
    def test_answers_from_university_fields(self):
        results = _stub_gateway().generate_values(
            {"name": "MIT", "country": "US"},
            [{"key": "cntr"}, {"key": "tuition"}],
        )
        by_key = {r.column_key: r for r in results}
        assert by_key["cntr"].value == "US"
        assert by_key["cntr"].confidence == 1.0
        assert by_key["cntr"].source == "local-stub"
        assert by_key["tuition"].value is None

    def test_no_columns_no_call(self):
        transport = FixedTransport({"results": []})
        assert _gateway(transport).generate_values({"name": "MIT"}, []) == []
        assert transport.calls == []


class TestProxyTransport:
    CFG = AIRefreshConfig(mode="proxy", proxy_url="http://proxy/api/v1/ai/generate", timeout=5)

    def test_posts_university_and_columns(self):
        session = FakeSession(FakeResponse('[{"columnKey": "fee", "value": 1, "confidence": 0.7}]'))
        gw = AIGateway(self.CFG, transport=ProxyTransport(self.CFG, session=session))
        results = gw.generate_values({"name": "MIT"}, [{"key": "fee"}])

        url, body, timeout = session.posted[0]
        assert url == "http://proxy/api/v1/ai/generate"
        assert body == {"university": {"name": "MIT"}, "columns": [{"key": "fee"}]}
        assert timeout == 5
        assert results[0].confidence == 0.7

    def test_http_error(self):
        session = FakeSession(FakeResponse("boom", status=500))
        transport = ProxyTransport(self.CFG, session=session)
        with pytest.raises(AIProviderError):
            transport.complete({"name": "MIT"}, [{"key": "fee"}])

    def test_timeout(self):
        transport = ProxyTransport(self.CFG, session=FakeSession(exc=requests.Timeout()))
        with pytest.raises(AIProviderError, match="timed out"):
            transport.complete({"name": "MIT"}, [{"key": "fee"}])

    def test_unparseable_body(self):
        transport = ProxyTransport(self.CFG, session=FakeSession(FakeResponse("<html>")))
        with pytest.raises(AIResponseError):
            transport.complete({"name": "MIT"}, [{"key": "fee"}])


# ── Refresh ──────────────────────────────────────────────────────────────

class TestRefreshView:
    def test_stub_refresh_writes_values_and_history(self, client, university, view):
        uid, vid = university["id"], view["id"]
        value_service.upsert_cell(uid, "cntr", vid, "USA")

        report = refresh.refresh_view(vid, ["cntr", "nr"], gateway=_stub_gateway())

        assert report["failed"] is None
        assert report["updated"] == [{
            "university_id": uid, "column_key": "cntr",
            "old_value": "USA", "new_value": "US", "confidence": 1.0,
        }]
        assert report["skipped"][0]["column_key"] == "nr"
        assert report["skipped"][0]["reason"] == "no value"

        history = ValueHistory.query.filter_by(university_id=uid).all()
        assert len(history) == 1
        assert history[0].old_value == "USA"
        assert history[0].new_value == "US"
        assert history[0].source == "local-stub"
        assert history[0].view_id == vid

    def test_unrequested_keys_are_skipped(self, client, university, view):
        transport = FixedTransport({"results": [
            {"columnKey": "web", "value": "https://web.mit.edu", "confidence": 0.8},
            {"columnKey": "uni_type", "value": "Public", "confidence": 0.9},
        ]})
        report = refresh.refresh_view(view["id"], ["web"], gateway=_gateway(transport))

        assert [u["column_key"] for u in report["updated"]] == ["web"]
        assert report["skipped"] == [{
            "university_id": university["id"], "column_key": "uni_type", "reason": "not requested",
        }]
        assert value_service.get_cell_value(university["id"], "uni_type", view["id"]) == "Private"

    def test_values_are_coerced_to_text(self, client, university, view):
        column_service.create_column(view["id"], {"key": "tuition", "type": "number"})
        transport = FixedTransport([{"columnKey": "tuition", "value": 57986, "confidence": 0.6}])
        refresh.refresh_view(view["id"], ["tuition"], gateway=_gateway(transport))
        assert value_service.get_cell_value(university["id"], "tuition", view["id"]) == "57986"

    def test_source_defaults_to_ai(self, client, university, view):
        transport = FixedTransport([{"columnKey": "web", "value": "https://mit.edu", "confidence": 0.5}])
        refresh.refresh_view(view["id"], ["web"], gateway=_gateway(transport))
        assert ValueHistory.query.one().source == "AI"

    def test_failure_stops_and_keeps_earlier_universities(self, client, view):
        ids = [_uni(client, n) for n in ("Alpha", "Beta", "Gamma")]
        transport = FailOnTransport("Beta", [{"columnKey": "web", "value": "https://x.edu", "confidence": 0.4}])

        report = refresh.refresh_view(view["id"], ["web"], gateway=_gateway(transport))

        assert transport.calls == ["Alpha", "Beta"]
        assert report["failed"] == {"university_id": ids[1], "error": "upstream 500"}
        assert [u["university_id"] for u in report["updated"]] == [ids[0]]
        assert CellValue.query.filter_by(view_id=view["id"], column_key="web").count() == 1
        assert ValueHistory.query.count() == 1

    def test_bad_response_counts_as_failure(self, client, university, view):
        transport = FixedTransport([{"columnKey": "web", "value": "x", "confidence": 3}])
        report = refresh.refresh_view(view["id"], ["web"], gateway=_gateway(transport))
        assert report["failed"]["university_id"] == university["id"]
        assert ValueHistory.query.count() == 0

    def test_subset_of_universities_in_order(self, client, view):
        ids = [_uni(client, n) for n in ("Alpha", "Beta", "Gamma")]
        transport = FixedTransport([])
        refresh.refresh_view(view["id"], ["web"], university_ids=[ids[2], ids[0]],
                             gateway=_gateway(transport))
        assert [name for name, _ in transport.calls] == ["Gamma", "Alpha"]

    def test_unknown_column_key(self, view):
        with pytest.raises(ValidationError):
            refresh.refresh_view(view["id"], ["nope"], gateway=_stub_gateway())

    def test_empty_column_keys(self, view):
        with pytest.raises(ValidationError):
            refresh.refresh_view(view["id"], [], gateway=_stub_gateway())

    def test_unknown_view(self):
        with pytest.raises(NotFoundError):
            refresh.refresh_view(999, ["web"], gateway=_stub_gateway())

    def test_unknown_university(self, view):
        with pytest.raises(NotFoundError):
            refresh.refresh_view(view["id"], ["web"], university_ids=[999], gateway=_stub_gateway())


# ── Endpoints ────────────────────────────────────────────────────────────

class TestAIEndpoints:
    def test_generate_with_stub(self, client):
        res = client.post(f"{API}/ai/generate", json={
            "university": {"name": "MIT", "country": "US"},
            "columns": [{"key": "cntr", "label": "Country"}],
        })
        assert res.status_code == 200
        assert res.get_json() == [{
            "columnKey": "cntr", "value": "US", "source": "local-stub",
            "confidence": 1.0, "notes": None,
        }]

    def test_generate_requires_university_name(self, client):
        res = client.post(f"{API}/ai/generate", json={"university": {}, "columns": []})
        assert res.status_code == 400

    def test_generate_provider_failure_is_502(self, app, client):
        app.extensions["ai_gateway"] = _gateway(FailOnTransport("MIT", []))
        res = client.post(f"{API}/ai/generate", json={
            "university": {"name": "MIT"}, "columns": [{"key": "web"}],
        })
        assert res.status_code == 502

    def test_refresh_endpoint(self, client, university, view):
        res = client.post(f"{API}/ai/refresh", json={"view_id": view["id"], "column_keys": ["cntr"]})
        body = res.get_json()
        assert res.status_code == 200
        assert body["failed"] is None
        assert body["updated"][0]["new_value"] == "US"

    def test_refresh_unknown_key_is_422(self, client, view):
        res = client.post(f"{API}/ai/refresh", json={"view_id": view["id"], "column_keys": ["nope"]})
        assert res.status_code == 422

    def test_refresh_rejects_non_list_keys(self, client, view):
        res = client.post(f"{API}/ai/refresh", json={"view_id": view["id"], "column_keys": "web"})
        assert res.status_code == 400

    def test_refresh_reports_partial_failure(self, app, client, view):
        ids = [_uni(client, n) for n in ("Alpha", "Beta")]
        app.extensions["ai_gateway"] = _gateway(
            FailOnTransport("Beta", [{"columnKey": "web", "value": "https://a.edu", "confidence": 1}])
        )
        body = client.post(f"{API}/ai/refresh", json={
            "view_id": view["id"], "column_keys": ["web"],
        }).get_json()
        assert body["failed"]["university_id"] == ids[1]
        assert len(body["updated"]) == 1
