"""
University Dashboard
AI gateway: asks a language model for column values of one university.

Transports:
    - DirectTransport: OpenAI-compatible chat completions via the openai SDK
    - ProxyTransport:  POST {university, columns} to another instance's
                       /api/v1/ai/generate endpoint via requests
    - StubTransport:   deterministic offline answers for dev/testing

All configuration is fixed when the gateway is built; there is no global
mutable AI settings object.

Usage:
    from unidash.ai.gateway import AIGateway, AIRefreshConfig
    gw = AIGateway(AIRefreshConfig.from_app_config(app.config))
    results = gw.generate_values(university.descriptor(), [c.descriptor() for c in cols])
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import requests

from unidash.core.exceptions import AIConfigError, AIProviderError, AIResponseError

logger = logging.getLogger(__name__)

AI_MODES = ("direct", "proxy", "stub")

SYSTEM_PROMPT = """You are UniDataAgent, a meticulous research assistant that updates a personal university dashboard.
Hard rules:
1) Output ONLY valid JSON. No markdown, no prose.
2) Follow the exact schema provided. Do not add extra keys.
3) Never invent facts. If you cannot verify, set value to null and explain briefly in notes.
4) Prefer official university sources. If not available, use reputable sources and say so in source.
5) Provide confidence from 0 to 1 for every field you set.
6) Use ISO dates (YYYY-MM-DD). Use a plain number for money without currency symbols unless asked.
7) Keep notes short. No opinions. No motivational text."""

OUTPUT_FORMAT = """Output format (JSON):
{
  "results": [
    {
      "columnKey": "string",
      "value": <appropriate type or null>,
      "source": "string (URL or source name)",
      "confidence": 0.0-1.0,
      "notes": "string or null"
    }
  ]
}

Return ONLY valid JSON matching the schema."""


# ── Configuration ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AIRefreshConfig:
    """Explicit AI refresh settings, validated at construction."""

    mode: str = "stub"
    api_key: str = ""
    api_base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    proxy_url: str = ""
    timeout: float = 60.0
    temperature: float = 0.3

    def __post_init__(self):
        if self.mode not in AI_MODES:
            raise AIConfigError(f"AI mode must be one of {', '.join(AI_MODES)}, got {self.mode!r}")
        if self.mode == "direct" and not (self.api_key and self.api_base_url):
            raise AIConfigError("direct AI mode requires an API key and base URL")
        if self.mode == "proxy" and not self.proxy_url:
            raise AIConfigError("proxy AI mode requires AI_PROXY_URL")

    @classmethod
    def from_app_config(cls, cfg) -> "AIRefreshConfig":
        return cls(
            mode=cfg.get("AI_MODE", "stub"),
            api_key=cfg.get("AI_API_KEY", ""),
            api_base_url=cfg.get("AI_API_BASE_URL", "https://api.openai.com/v1"),
            model=cfg.get("AI_MODEL", "gpt-4o-mini"),
            proxy_url=cfg.get("AI_PROXY_URL", ""),
            timeout=float(cfg.get("AI_TIMEOUT", 60)),
            temperature=float(cfg.get("AI_TEMPERATURE", 0.3)),
        )


@dataclass
class AIResult:
    column_key: str
    value: object
    source: str
    confidence: float
    notes: str | None

    def to_dict(self) -> dict:
        return {
            "columnKey": self.column_key,
            "value": self.value,
            "source": self.source,
            "confidence": self.confidence,
            "notes": self.notes,
        }


# ── Prompt & normalisation ───────────────────────────────────────────────────

def build_user_prompt(university: dict, columns: list[dict]) -> str:
    lines = [
        f"- {c['label']} ({c['key']}): {c['type']}"
        + (f" - {c['aiInstructions']}" if c.get("aiInstructions") else "")
        for c in columns
    ]
    header = [f"University: {university.get('name')}"]
    for label, field in (("Country", "country"), ("City", "city"), ("Website", "website")):
        if university.get(field):
            header.append(f"{label}: {university[field]}")
    return (
        "Update the following university data:\n\n"
        + "\n".join(header)
        + "\n\nColumns to update:\n"
        + "\n".join(lines)
        + "\n\n"
        + OUTPUT_FORMAT
    )


def normalize_results(payload) -> list[AIResult]:
    """Turn a decoded response into AIResult objects.

    Accepts {"results": [...]}, a bare list, or a single result object.
    Missing fields default to "" / None / 0.0.

    Raises:
        AIResponseError: On a non-object item or a confidence outside 0..1.
    """
    if isinstance(payload, dict) and "results" in payload:
        payload = payload["results"]
    items = payload if isinstance(payload, list) else [payload]

    results = []
    for item in items:
        if not isinstance(item, dict):
            raise AIResponseError(f"AI result is not an object: {item!r}")
        raw_conf = item.get("confidence")
        try:
            confidence = float(raw_conf) if raw_conf is not None else 0.0
        except (TypeError, ValueError):
            raise AIResponseError(f"AI confidence is not a number: {raw_conf!r}")
        if not 0.0 <= confidence <= 1.0:
            raise AIResponseError(f"AI confidence out of range: {confidence}")
        notes = item.get("notes")
        results.append(AIResult(
            column_key=str(item.get("columnKey") or ""),
            value=item.get("value"),
            source=str(item.get("source") or ""),
            confidence=confidence,
            notes=str(notes) if notes is not None else None,
        ))
    return results


def _decode(content: str):
    if not content:
        raise AIResponseError("AI response was empty")
    try:
        return json.loads(content)
    except ValueError as exc:
        raise AIResponseError(f"Failed to parse AI response: {exc}") from exc


# ── Transports ───────────────────────────────────────────────────────────────

class AITransport(ABC):
    """Sends one university's request and returns the decoded JSON payload."""

    @abstractmethod
    def complete(self, university: dict, columns: list[dict]):
        ...


class DirectTransport(AITransport):
    """OpenAI-compatible chat completions with a JSON response format."""

    def __init__(self, config: AIRefreshConfig):
        self.config = config
        self._client = None

    def _get_client(self):
        if self._client is None:
            try:
                import openai
            except ImportError:
                raise AIConfigError("openai package not installed. Run: pip install openai")
            self._client = openai.OpenAI(
                api_key=self.config.api_key,
                base_url=self.config.api_base_url,
                timeout=self.config.timeout,
            )
        return self._client

    def complete(self, university: dict, columns: list[dict]):
        client = self._get_client()
        import openai

        try:
            response = client.chat.completions.create(
                model=self.config.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_user_prompt(university, columns)},
                ],
                response_format={"type": "json_object"},
                temperature=self.config.temperature,
            )
        except openai.OpenAIError as exc:
            raise AIProviderError(f"AI API error: {exc}") from exc
        if not response.choices:
            raise AIResponseError("No choices in AI response")
        return _decode(response.choices[0].message.content)


class ProxyTransport(AITransport):
    """Forwards the request to a proxy that owns the API key.

    Pass a pre-configured ``requests.Session`` to reuse connections or to
    inject a fake in tests.
    """

    def __init__(self, config: AIRefreshConfig, session: requests.Session | None = None):
        self.config = config
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def complete(self, university: dict, columns: list[dict]):
        try:
            resp = self.session.post(
                self.config.proxy_url,
                json={"university": university, "columns": columns},
                timeout=self.config.timeout,
            )
            resp.raise_for_status()
        except requests.Timeout as exc:
            raise AIProviderError(f"Proxy timed out after {self.config.timeout}s") from exc
        except requests.RequestException as exc:
            raise AIProviderError(f"Proxy error: {exc}") from exc
        return _decode(resp.text)


class StubTransport(AITransport):
    """
    Deterministic answers for dev/testing. No network, no API key.

    Columns that mirror a university field are answered from the descriptor
    with full confidence; everything else comes back null.
    """

    FIELD_KEYS = {
        "uni_name": "name",
        "cntr": "country",
        "state": "state",
        "city": "city",
        "uni_type": "type",
        "web": "website",
    }

    def complete(self, university: dict, columns: list[dict]):
        results = []
        for col in columns:
            field = self.FIELD_KEYS.get(col["key"])
            value = university.get(field) if field else None
            results.append({
                "columnKey": col["key"],
                "value": value,
                "source": "local-stub",
                "confidence": 1.0 if value is not None else 0.0,
                "notes": None if value is not None else "No offline data for this column",
            })
        return {"results": results}


# ── Gateway ──────────────────────────────────────────────────────────────────

class AIGateway:
    """Selects a transport from the config and normalises its answers."""

    def __init__(self, config: AIRefreshConfig, transport: AITransport | None = None):
        self.config = config
        self.transport = transport or self._build_transport(config)

    @staticmethod
    def _build_transport(config: AIRefreshConfig) -> AITransport:
        if config.mode == "direct":
            return DirectTransport(config)
        if config.mode == "proxy":
            return ProxyTransport(config)
        return StubTransport()

    def generate_values(self, university: dict, columns: list[dict]) -> list[AIResult]:
        """Ask for values of ``columns`` for one university.

        Raises:
            AIProviderError: Transport failure.
            AIResponseError: Unparseable or out-of-range response.
        """
        if not columns:
            return []
        payload = self.transport.complete(university, columns)
        results = normalize_results(payload)
        logger.info(
            "AI generate mode=%s university=%s columns=%s results=%s",
            self.config.mode, university.get("name"), len(columns), len(results),
        )
        return results
