from __future__ import annotations

from flask import Flask, g, request

from ..common.http import is_privileged, json_body, make_auth_guards, ok
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = make_auth_guards(container.auth_service.verify)
    login_required = guards.login_required
    staff_required = guards.roles_required(Role.ADMIN, Role.MANAGER)
    overtime = container.overtime_service

    def list_page(employee_id):
        args = request.args
        page = overtime.list_requests(
            employee_id=employee_id,
            status=args.get("status"),
            start_date=args.get("start_date"),
            end_date=args.get("end_date"),
            page=args.get("page"),
            limit=args.get("limit"),
        )
        return ok([r.to_dict() for r in page.items], pagination=page.pagination())

    @app.route("/api/overtime", methods=["GET"], endpoint="overtime_list_own")
    @login_required
    def list_own():
        return list_page(g.account.employee_id)

    @app.route("/api/overtime/all", methods=["GET"], endpoint="overtime_list_all")
    @staff_required
    def list_all():
        return list_page(request.args.get("employee_id") or None)

    @app.route("/api/overtime", methods=["POST"], endpoint="overtime_submit")
    @login_required
    def submit():
        body = json_body()
        created = overtime.submit_request(
            g.account.employee_id,
            request_date=body.get("request_date"),
            hours_requested=body.get("hours_requested"),
            reason=body.get("reason"),
        )
        return ok(created.to_dict(), message="Overtime request submitted", status=201)

    @app.route("/api/overtime/<int:request_id>", methods=["DELETE"], endpoint="overtime_cancel")
    @login_required
    def cancel(request_id: int):
        cancelled = overtime.cancel_request(request_id, employee_id=g.account.employee_id)
        return ok(cancelled.to_dict(), message="Overtime request cancelled")

    @app.route("/api/overtime/<int:request_id>", methods=["PATCH"], endpoint="overtime_review")
    @staff_required
    def review(request_id: int):
        body = json_body()
        reviewed = overtime.review_request(
            request_id,
            body.get("status"),
            reviewer_id=g.account.employee_id,
            notes=body.get("notes"),
        )
        return ok(reviewed.to_dict(), message=f"Overtime request {reviewed.status.value}")

    @app.route("/api/overtime/stats", methods=["GET"], endpoint="overtime_stats")
    @login_required
    def stats():
        employee_id = g.account.employee_id
        if is_privileged() and request.args.get("employee_id"):
            employee_id = request.args["employee_id"]
        return ok(overtime.stats(employee_id, period=request.args.get("period")).to_dict())
