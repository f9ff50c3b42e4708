from __future__ import annotations

from flask import Flask, g, request

from ..common.http import json_body, make_auth_guards, ok
from ..common.validators import normalize_employee_id
from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    auth = container.auth_service
    guards = make_auth_guards(auth.verify)
    login_required = guards.login_required
    roles_required = guards.roles_required

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        body = json_body()
        result = auth.login(
            body.get("username", ""),
            body.get("password", ""),
            remember_me=bool(body.get("remember_me") or body.get("rememberMe")),
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        return ok(result.to_dict(), message="Login successful")

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    @login_required
    def logout():
        auth.logout(g.token)
        return ok(message="Logged out")

    @app.route("/api/auth/logout-all", methods=["POST"], endpoint="auth_logout_all")
    @login_required
    def logout_all():
        count = auth.logout_all(g.account.employee_id)
        return ok({"sessions_revoked": count}, message="Logged out from all devices")

    @app.route("/api/auth/verify", methods=["GET"], endpoint="auth_verify")
    @login_required
    def verify():
        return ok({"valid": True, "user": g.account.to_dict()})

    @app.route("/api/auth/profile", methods=["GET"], endpoint="auth_profile")
    @login_required
    def profile():
        return ok(g.account.to_dict())

    @app.route("/api/auth/refresh", methods=["POST"], endpoint="auth_refresh")
    @login_required
    def refresh():
        result = auth.refresh(g.token)
        return ok(result.to_dict(), message="Token refreshed" if result.refreshed else "Token does not need refreshing yet")

    @app.route("/api/auth/change-password", methods=["POST"], endpoint="auth_change_password")
    @login_required
    def change_password():
        body = json_body()
        revoked = auth.change_password(
            g.token,
            current_password=body.get("current_password") or body.get("currentPassword") or "",
            new_password=body.get("new_password") or body.get("newPassword") or "",
        )
        return ok({"sessions_revoked": revoked}, message="Password changed")

    @app.route("/api/accounts/<employee_id>/reset-password", methods=["POST"], endpoint="accounts_reset_password")
    @roles_required(Role.ADMIN)
    def reset_password(employee_id: str):
        body = json_body()
        revoked = auth.reset_password(employee_id, body.get("new_password") or body.get("newPassword") or "")
        return ok({"sessions_revoked": revoked}, message="Password reset")

    @app.route("/api/accounts/<employee_id>/sessions", methods=["GET"], endpoint="accounts_sessions")
    @login_required
    def sessions(employee_id: str):
        employee_id = normalize_employee_id(employee_id)
        if not g.account.has_role(Role.ADMIN) and g.account.employee_id != employee_id:
            raise AuthorizationError("You can only view your own sessions")
        return ok(auth.list_sessions(employee_id))
