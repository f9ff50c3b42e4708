from __future__ import annotations

from flask import Flask, g, request

from ..common.http import json_body, make_auth_guards, ok, require_self_or_privileged
from ..common.validators import normalize_employee_id
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = make_auth_guards(container.auth_service.verify)
    login_required = guards.login_required
    staff_required = guards.roles_required(Role.ADMIN, Role.MANAGER)
    admin_required = guards.roles_required(Role.ADMIN)
    employees = container.employee_service

    @app.route("/api/employees", methods=["GET"], endpoint="employees_list")
    @staff_required
    def list_employees():
        args = request.args
        page = employees.list_employees(
            status=args.get("status"),
            department=args.get("department"),
            position=args.get("position"),
            search=args.get("search"),
            page=args.get("page"),
            limit=args.get("limit"),
        )
        return ok([e.to_dict() for e in page.items], pagination=page.pagination())

    @app.route("/api/employees", methods=["POST"], endpoint="employees_create")
    @staff_required
    def create_employee():
        body = json_body()
        created = employees.create_employee(
            first_name=body.get("first_name", ""),
            last_name=body.get("last_name", ""),
            email=body.get("email", ""),
            department=body.get("department", ""),
            position=body.get("position", ""),
            hire_date=body.get("hire_date") or body.get("date_hired"),
            phone=body.get("phone"),
            hourly_rate=body.get("hourly_rate"),
            employment_type=body.get("employment_type"),
            role=body.get("role") or Role.EMPLOYEE,
            username=body.get("username"),
            password=body.get("password"),
            actor_role=g.account.role,
        )
        return ok(created.to_dict(), message="Employee created", status=201)

    @app.route("/api/employees/stats/overview", methods=["GET"], endpoint="employees_overview")
    @staff_required
    def overview():
        return ok(employees.employee_overview().to_dict())

    @app.route("/api/employees/<employee_id>", methods=["GET"], endpoint="employees_get")
    @login_required
    def get_employee(employee_id: str):
        require_self_or_privileged(normalize_employee_id(employee_id))
        return ok(employees.get_employee(employee_id).to_dict())

    @app.route("/api/employees/<employee_id>", methods=["PUT", "PATCH"], endpoint="employees_update")
    @staff_required
    def update_employee(employee_id: str):
        updated = employees.update_employee(employee_id, json_body(), actor_role=g.account.role)
        return ok(updated.to_dict(), message="Employee updated")

    @app.route("/api/employees/<employee_id>", methods=["DELETE"], endpoint="employees_delete")
    @admin_required
    def delete_employee(employee_id: str):
        status = request.args.get("status") or "inactive"
        employee = employees.soft_delete_employee(employee_id, status=status)
        return ok(employee.to_dict(), message="Employee deactivated")
