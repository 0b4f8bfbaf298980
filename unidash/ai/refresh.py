"""
AI refresh: fill a view's cells from the AI gateway.

Each university is one unit of work. Its results are upserted cell by cell,
every change is appended to the history ledger with the AI's source and
confidence, and the university is committed before moving on. The first
failure stops the run; universities already committed stay committed.
"""

import logging

from flask import current_app

from unidash.ai.gateway import AIGateway, AIRefreshConfig
from unidash.core.exceptions import AIProviderError, NotFoundError, ValidationError
from unidash.models import db
from unidash.models.sheet import University, View
from unidash.services import column_service, history_service, value_service

logger = logging.getLogger(__name__)


def get_gateway() -> AIGateway:
    """Return the app's gateway, building it from config on first use."""
    gateway = current_app.extensions.get("ai_gateway")
    if gateway is None:
        gateway = AIGateway(AIRefreshConfig.from_app_config(current_app.config))
        current_app.extensions["ai_gateway"] = gateway
    return gateway


def _resolve_columns(view_id: int, column_keys: list[str]):
    by_key = column_service.columns_by_key(view_id)
    unknown = [k for k in column_keys if k not in by_key]
    if unknown:
        raise ValidationError(
            f"Unknown column key(s) for view {view_id}: {', '.join(unknown)}",
            details={"column_keys": unknown},
        )
    return [by_key[k] for k in column_keys]


def _resolve_universities(university_ids):
    if university_ids is None:
        return University.query.order_by(University.id).all()
    unis = []
    for uid in university_ids:
        uni = db.session.get(University, uid)
        if uni is None:
            raise NotFoundError(resource="University", resource_id=uid)
        unis.append(uni)
    return unis


def _apply_results(uni, view_id, requested, results, updated, skipped):
    for result in results:
        key = result.column_key
        if key not in requested:
            skipped.append({"university_id": uni.id, "column_key": key, "reason": "not requested"})
            continue
        if result.value is None:
            skipped.append({
                "university_id": uni.id, "column_key": key,
                "reason": "no value", "notes": result.notes,
            })
            continue
        old_value = value_service.get_cell_value(uni.id, key, view_id)
        cell = value_service.upsert_cell(uni.id, key, view_id, result.value, commit=False)
        history_service.record_change(
            uni.id, key, view_id,
            old_value=old_value,
            new_value=cell["value"],
            source=result.source or "AI",
            confidence=result.confidence,
            notes=result.notes,
            commit=False,
        )
        updated.append({
            "university_id": uni.id,
            "column_key": key,
            "old_value": old_value,
            "new_value": cell["value"],
            "confidence": result.confidence,
        })


def refresh_view(
    view_id: int,
    column_keys: list[str],
    university_ids: list[int] | None = None,
    gateway: AIGateway | None = None,
) -> dict:
    """Refresh ``column_keys`` of a view for the given universities.

    Args:
        view_id: View whose cells are refreshed.
        column_keys: Keys to ask for; must be columns of the view.
        university_ids: Universities to refresh, in order. All when None.
        gateway: AI gateway; defaults to the app's configured one.

    Returns:
        {"updated": [...], "skipped": [...], "failed": None or
         {"university_id", "error"}}

    Raises:
        NotFoundError: Unknown view or university.
        ValidationError: Empty or unknown column keys.
    """
    if db.session.get(View, view_id) is None:
        raise NotFoundError(resource="View", resource_id=view_id)
    if not column_keys:
        raise ValidationError("column_keys is required", details={"column_keys": "required"})
    columns = _resolve_columns(view_id, list(column_keys))
    universities = _resolve_universities(university_ids)
    gateway = gateway or get_gateway()

    descriptors = [c.descriptor() for c in columns]
    requested = {c.key for c in columns}
    updated, skipped, failed = [], [], None

    for uni in universities:
        try:
            results = gateway.generate_values(uni.descriptor(), descriptors)
            _apply_results(uni, view_id, requested, results, updated, skipped)
            db.session.commit()
        except AIProviderError as exc:
            db.session.rollback()
            logger.warning("AI refresh stopped at university=%s: %s", uni.id, exc)
            failed = {"university_id": uni.id, "error": str(exc)}
            break

    logger.info(
        "AI refresh view=%s universities=%s updated=%s skipped=%s failed=%s",
        view_id, len(universities), len(updated), len(skipped), bool(failed),
    )
    return {"updated": updated, "skipped": skipped, "failed": failed}
