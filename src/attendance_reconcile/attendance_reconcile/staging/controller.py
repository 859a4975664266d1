from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.log import get_logger
from ..common.responses import error_response, result_response
from ..container import Container
from ..core.enums import StagedField
from ..core.exceptions import DomainError, ValidationError
from .model import StagedAttendanceRow, StagingBatch

logger = get_logger(__name__)


def row_json(row: StagedAttendanceRow, *, processing: bool = False, error: str | None = None) -> dict:
    return {
        "id": row.row_id,
        "name": row.name,
        "email": row.email,
        "phone": row.phone,
        "note": row.note,
        "startDate": row.start_date,
        "startTime": row.start_time,
        "endDate": row.end_date,
        "endTime": row.end_time,
        "fullStartTime": row.full_start_time,
        "fullEndTime": row.full_end_time,
        "duration": row.numeric_duration,
        "displayDuration": row.display_duration,
        "matchedUserId": row.matched_user_id,
        "canApprove": row.can_approve and not processing,
        "processing": processing,
        "error": error,
    }


def _parse_field(raw) -> StagedField:
    try:
        return StagedField(str(raw or ""))
    except ValueError:
        raise ValidationError(f"Unknown field: {raw}") from None


def register(app: Flask, container: Container) -> None:
    def _batch_json(company_id: str, batch: StagingBatch) -> dict:
        approval = container.desks.for_company(company_id).staged_approval
        return {
            "companyId": batch.company_id,
            "batchId": batch.batch_id,
            "unresolved": batch.unresolved_count,
            "rows": [
                row_json(r, processing=approval.is_processing(r.row_id), error=approval.error_for(r.row_id))
                for r in batch.rows
            ],
        }

    @app.route("/api/companies/<company_id>/staging", methods=["GET"], endpoint="staging_load")
    async def staging_load(company_id: str):
        store = container.desks.for_company(company_id).store
        try:
            batch = await store.load()
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, "data": _batch_json(company_id, batch)})

    @app.route("/api/companies/<company_id>/staging", methods=["POST"], endpoint="staging_upload")
    async def staging_upload(company_id: str):
        upload = request.files.get("file")
        if upload is not None:
            content = upload.read()
        else:
            content = request.get_data()
        if not content:
            return error_response(ValidationError("Please choose a CSV file"))

        store = container.desks.for_company(company_id).store
        try:
            batch = await store.import_csv(content)
        except DomainError as e:
            logger.warning("CSV upload for company %s rejected: %s", company_id, e)
            return error_response(e)
        return jsonify({"success": True, "message": f"Imported {len(batch.rows)} row(s)", "data": _batch_json(company_id, batch)})

    @app.route("/api/companies/<company_id>/staging", methods=["DELETE"], endpoint="staging_clear")
    async def staging_clear(company_id: str):
        store = container.desks.for_company(company_id).store
        try:
            batch = await store.clear()
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, "message": "Staging list cleared", "data": _batch_json(company_id, batch)})

    @app.route("/api/companies/<company_id>/staging/rows/<row_id>", methods=["PATCH"], endpoint="staging_edit_row")
    def staging_edit_row(company_id: str, row_id: str):
        data = request.get_json(silent=True) or {}
        store = container.desks.for_company(company_id).store
        try:
            field = _parse_field(data.get("field"))
            if data.get("blur"):
                row = store.normalize_on_blur(row_id, field, data.get("value", ""))
            else:
                row = store.edit_field(row_id, field, data.get("value", ""))
        except DomainError as e:
            return error_response(e)
        if row is None:
            return jsonify({"success": False, "message": "Row is no longer staged"}), 404
        return jsonify({"success": True, "data": row_json(row)})

    @app.route("/api/companies/<company_id>/staging/rows/<row_id>", methods=["DELETE"], endpoint="staging_remove_row")
    async def staging_remove_row(company_id: str, row_id: str):
        store = container.desks.for_company(company_id).store
        try:
            batch = await store.remove(row_id)
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, "message": "Entry removed", "data": _batch_json(company_id, batch)})

    @app.route(
        "/api/companies/<company_id>/staging/rows/<row_id>/approve",
        methods=["POST"],
        endpoint="staging_approve_row",
    )
    async def staging_approve_row(company_id: str, row_id: str):
        desk = container.desks.for_company(company_id)
        result = await desk.staged_approval.approve(row_id)
        data = _batch_json(company_id, desk.store.batch) if desk.store.batch else None
        return result_response(result, data)
