from __future__ import annotations

from flask import Flask, g, request

from ..common.http import is_privileged, json_body, make_auth_guards, ok, require_self_or_privileged
from ..common.validators import normalize_employee_id
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = make_auth_guards(container.auth_service.verify)
    login_required = guards.login_required
    staff_required = guards.roles_required(Role.ADMIN, Role.MANAGER)
    attendance = container.attendance_service

    def scoped_employee_id() -> str | None:
        # employees only ever see their own rows
        if is_privileged():
            return request.args.get("employee_id") or None
        return g.account.employee_id

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    @login_required
    def list_attendance():
        args = request.args
        page = attendance.list_records(
            employee_id=scoped_employee_id(),
            start_date=args.get("start_date"),
            end_date=args.get("end_date"),
            status=args.get("status"),
            department=args.get("department") if is_privileged() else None,
            page=args.get("page"),
            limit=args.get("limit"),
        )
        return ok([r.to_dict() for r in page.items], pagination=page.pagination())

    @app.route("/api/attendance/clock", methods=["POST"], endpoint="attendance_clock")
    @login_required
    def clock():
        body = json_body()
        action = body.get("action")
        if not action:
            raise ValidationError("action is required (in or out)")
        record = attendance.clock(g.account.employee_id, action, notes=body.get("notes"))
        message = "Clocked in" if record.time_out is None else "Clocked out"
        return ok(record.to_dict(), message=message)

    @app.route("/api/attendance/status", methods=["GET"], endpoint="attendance_status")
    @login_required
    def status():
        return ok(attendance.get_status(g.account.employee_id))

    @app.route("/api/attendance/manual", methods=["POST"], endpoint="attendance_manual")
    @staff_required
    def manual():
        body = json_body()
        record = attendance.manual_entry(
            employee_id=body.get("employee_id"),
            work_date=body.get("work_date") or body.get("date"),
            time_in=body.get("time_in"),
            time_out=body.get("time_out"),
            status=body.get("status"),
            break_minutes=body.get("break_minutes"),
            notes=body.get("notes"),
        )
        return ok(record.to_dict(), message="Attendance recorded", status=201)

    @app.route("/api/attendance/<int:attendance_id>", methods=["PUT", "PATCH"], endpoint="attendance_update")
    @staff_required
    def update(attendance_id: int):
        record = attendance.update_record(attendance_id, json_body())
        return ok(record.to_dict(), message="Attendance updated")

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="attendance_delete")
    @staff_required
    def delete(attendance_id: int):
        attendance.delete_record(attendance_id)
        return ok(message="Attendance deleted")

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @login_required
    def stats():
        args = request.args
        result = attendance.get_stats(
            on_date=args.get("date"),
            start_date=args.get("start_date"),
            end_date=args.get("end_date"),
            department=args.get("department") if is_privileged() else None,
            employee_id=scoped_employee_id(),
        )
        return ok(result.to_dict())

    @app.route("/api/attendance/summary", methods=["GET"], endpoint="attendance_summary_self")
    @app.route("/api/attendance/summary/<employee_id>", methods=["GET"], endpoint="attendance_summary")
    @login_required
    def summary(employee_id: str | None = None):
        employee_id = normalize_employee_id(employee_id) if employee_id else g.account.employee_id
        require_self_or_privileged(employee_id)
        args = request.args
        result = attendance.employee_summary(
            employee_id,
            start_date=args.get("start_date"),
            end_date=args.get("end_date"),
            period=args.get("period"),
        )
        return ok(result.to_dict())
