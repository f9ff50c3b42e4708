from __future__ import annotations

from flask import Flask, g, request

from ..common.http import is_privileged, json_body, make_auth_guards, ok, require_self_or_privileged
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = make_auth_guards(container.auth_service.verify)
    login_required = guards.login_required
    staff_required = guards.roles_required(Role.ADMIN, Role.MANAGER)
    payroll = container.payroll_service

    @app.route("/api/payroll", methods=["GET"], endpoint="payroll_list")
    @login_required
    def list_payroll():
        args = request.args
        employee_id = args.get("employee_id") if is_privileged() else g.account.employee_id
        page = payroll.list_payroll(
            employee_id=employee_id,
            status=args.get("status"),
            start_date=args.get("start_date"),
            end_date=args.get("end_date"),
            page=args.get("page"),
            limit=args.get("limit"),
        )
        return ok([r.to_dict() for r in page.items], pagination=page.pagination())

    @app.route("/api/payroll/<int:payroll_id>", methods=["GET"], endpoint="payroll_get")
    @login_required
    def get_payroll(payroll_id: int):
        record = payroll.get_payroll(payroll_id)
        require_self_or_privileged(record.employee_id)
        return ok(record.to_dict())

    @app.route("/api/payroll/calculate", methods=["POST"], endpoint="payroll_calculate")
    @staff_required
    def calculate():
        body = json_body()
        result = payroll.calculate_payroll(
            body.get("employee_id"),
            body.get("start_date") or body.get("pay_period_start"),
            body.get("end_date") or body.get("pay_period_end"),
            bonus=body.get("bonus"),
            allowances=body.get("allowances"),
            deductions=body.get("deductions"),
        )
        return ok(result.to_dict())

    @app.route("/api/payroll/generate", methods=["POST"], endpoint="payroll_generate")
    @staff_required
    def generate():
        body = json_body()
        employee_ids = body.get("employee_ids")
        if employee_ids is not None and not isinstance(employee_ids, list):
            raise ValidationError("employee_ids must be a list")
        report = payroll.generate_payroll(
            start=body.get("start_date") or body.get("pay_period_start"),
            end=body.get("end_date") or body.get("pay_period_end"),
            employee_ids=employee_ids or None,
            bonus=body.get("bonus"),
            allowances=body.get("allowances"),
            deductions=body.get("deductions"),
            notes=body.get("notes"),
        )
        summary = report.to_dict()["summary"]
        message = f"Generated {summary['generated']} payroll records, {summary['failed']} failed"
        return ok(report.to_dict(), message=message, status=201 if report.generated else 200)

    @app.route("/api/payroll/<int:payroll_id>/status", methods=["PATCH", "PUT"], endpoint="payroll_status")
    @staff_required
    def update_status(payroll_id: int):
        record = payroll.update_status(payroll_id, json_body().get("status"))
        return ok(record.to_dict(), message=f"Payroll marked {record.status.value}")

    @app.route("/api/payroll/<int:payroll_id>", methods=["PUT", "PATCH"], endpoint="payroll_update")
    @staff_required
    def update_payroll(payroll_id: int):
        record = payroll.update_payroll(payroll_id, json_body())
        return ok(record.to_dict(), message="Payroll updated")

    @app.route("/api/payroll/<int:payroll_id>", methods=["DELETE"], endpoint="payroll_delete")
    @staff_required
    def delete_payroll(payroll_id: int):
        payroll.delete_payroll(payroll_id)
        return ok(message="Payroll deleted")

    @app.route("/api/payroll/next-payday", methods=["GET"], endpoint="payroll_next_payday")
    @login_required
    def next_payday():
        return ok(payroll.next_payday().to_dict())
