from __future__ import annotations

from datetime import datetime

from flask import Flask, jsonify, request

from ..common.datetime_utils import format_iso_date, try_parse_iso_date
from ..common.log import get_logger
from ..common.responses import error_response, result_response
from ..container import Container
from ..core.enums import ApprovalStatus, StagedField
from ..core.exceptions import DomainError, ValidationError
from ..reconciliation.model import ReconciliationDraft
from ..timekeeping.duration import DurationCalculator
from .export import write_attendance_csv
from .manual_entry import ManualEntry
from .model import AttendanceRecord

logger = get_logger(__name__)


def record_json(r: AttendanceRecord, *, processing: bool = False) -> dict:
    minutes = r.duration_minutes
    if minutes is None:
        minutes = DurationCalculator.between(r.start_date, r.start_time, r.end_date, r.end_time)
    return {
        "id": r.record_id,
        "userId": r.user_id,
        "employeeName": r.employee_name,
        "employeeEmail": r.employee_email,
        "startDate": format_iso_date(r.start_date) if r.start_date else "",
        "startTime": r.start_time.main,
        "endDate": format_iso_date(r.end_date) if r.end_date else "",
        "endTime": r.end_time.main,
        "fullStartTime": r.full_start_time,
        "fullEndTime": r.full_end_time,
        "duration": minutes,
        "displayDuration": DurationCalculator.display(minutes),
        "approvalStatus": r.approval_status.value,
        "notes": r.notes,
        "processing": processing,
    }


def draft_json(d: ReconciliationDraft, *, saving: bool = False) -> dict:
    return {
        "id": d.record_id,
        "startDate": d.start_date,
        "startTime": d.start_time,
        "endDate": d.end_date,
        "endTime": d.end_time,
        "fullStartTime": d.full_start_time,
        "fullEndTime": d.full_end_time,
        "duration": d.numeric_duration,
        "displayDuration": d.display_duration,
        "canSave": d.is_valid and not saving,
        "saving": saving,
    }


def register(app: Flask, container: Container) -> None:
    def _board_json(company_id: str) -> list[dict]:
        board = container.desks.for_company(company_id).workflow.board
        return [record_json(r, processing=board.is_processing(r.record_id)) for r in board.records]

    @app.route("/api/companies/<company_id>/attendance/pending", methods=["GET"], endpoint="attendance_pending")
    async def attendance_pending(company_id: str):
        workflow = container.desks.for_company(company_id).workflow
        try:
            await workflow.refresh()
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, "data": _board_json(company_id)})

    @app.route(
        "/api/companies/<company_id>/attendance/<record_id>/approve",
        methods=["POST"],
        endpoint="attendance_approve",
    )
    async def attendance_approve(company_id: str, record_id: str):
        workflow = container.desks.for_company(company_id).workflow
        result = await workflow.approve(record_id)
        return result_response(result, _board_json(company_id))

    @app.route(
        "/api/companies/<company_id>/attendance/<record_id>/reject",
        methods=["POST"],
        endpoint="attendance_reject",
    )
    async def attendance_reject(company_id: str, record_id: str):
        workflow = container.desks.for_company(company_id).workflow
        result = await workflow.reject(record_id)
        return result_response(result, _board_json(company_id))

    def _record_filters() -> dict:
        filters = {}
        for arg, key in (("fromDate", "from_date"), ("toDate", "to_date")):
            raw = request.args.get(arg)
            if raw:
                parsed = try_parse_iso_date(raw)
                if parsed is None:
                    raise ValidationError(f"{arg} must be YYYY-MM-DD")
                filters[key] = parsed
        if request.args.get("userId"):
            filters["user_id"] = request.args["userId"]
        if request.args.get("approvalStatus"):
            try:
                filters["status"] = ApprovalStatus(request.args["approvalStatus"].lower())
            except ValueError:
                raise ValidationError(f"Unknown approval status: {request.args['approvalStatus']}") from None
        return filters

    @app.route("/api/companies/<company_id>/attendance", methods=["GET"], endpoint="attendance_list")
    async def attendance_list(company_id: str):
        try:
            records = await container.attendance_repo.list_records(company_id=company_id, **_record_filters())
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, "data": [record_json(r) for r in records]})

    @app.route("/api/companies/<company_id>/attendance/export", methods=["GET"], endpoint="attendance_export")
    async def attendance_export(company_id: str):
        try:
            records = await container.attendance_repo.list_records(company_id=company_id, **_record_filters())
        except DomainError as e:
            return error_response(e)

        csv_bytes = write_attendance_csv(records)
        filename = f"attendance_report_{datetime.now():%Y%m%d}.csv"
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/attendance/manual", methods=["POST"], endpoint="attendance_manual")
    async def attendance_manual():
        data = request.get_json(silent=True) or {}
        entry = ManualEntry(
            user_id=str(data.get("userId") or ""),
            start_date=str(data.get("startDate") or ""),
            clock_in=str(data.get("clockIn") or ""),
            end_date=str(data.get("endDate") or data.get("startDate") or ""),
            clock_out=str(data.get("clockOut") or ""),
            notes=str(data.get("notes") or ""),
            shift_id=data.get("shiftId") or None,
        )
        try:
            event = await container.manual_entry_service.create(entry)
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, "message": "Attendance created", "data": event.to_payload()}), 201

    # Reconciliation of committed records

    @app.route(
        "/api/companies/<company_id>/attendance/<record_id>/reconcile",
        methods=["POST"],
        endpoint="reconcile_begin",
    )
    async def reconcile_begin(company_id: str, record_id: str):
        record = container.desks.for_company(company_id).workflow.board.record(record_id)
        if record is None:
            # Approved records are not on the pending board.
            try:
                records = await container.attendance_repo.list_records(company_id=company_id)
            except DomainError as e:
                return error_response(e)
            record = next((r for r in records if r.record_id == record_id), None)
        if record is None:
            return jsonify({"success": False, "message": "Attendance not found"}), 404
        draft = container.reconciliation.begin(record)
        return jsonify({"success": True, "data": draft_json(draft)})

    @app.route("/api/attendance/<record_id>/reconcile", methods=["PATCH"], endpoint="reconcile_edit")
    def reconcile_edit(record_id: str):
        data = request.get_json(silent=True) or {}
        try:
            try:
                field = StagedField(str(data.get("field") or ""))
            except ValueError:
                raise ValidationError(f"Unknown field: {data.get('field')}") from None
            if data.get("blur"):
                draft = container.reconciliation.blur(record_id, field, data.get("value", ""))
            else:
                draft = container.reconciliation.edit(record_id, field, data.get("value", ""))
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, "data": draft_json(draft, saving=container.reconciliation.is_saving(record_id))})

    @app.route("/api/attendance/<record_id>/reconcile", methods=["DELETE"], endpoint="reconcile_cancel")
    def reconcile_cancel(record_id: str):
        container.reconciliation.cancel(record_id)
        return jsonify({"success": True})

    @app.route("/api/attendance/<record_id>/reconcile/save", methods=["POST"], endpoint="reconcile_save")
    async def reconcile_save(record_id: str):
        result = await container.reconciliation.save(record_id)
        data = record_json(result.payload) if result.payload is not None else None
        return result_response(result, data)
