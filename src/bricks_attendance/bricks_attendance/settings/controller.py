from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, make_auth_guards, ok
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = make_auth_guards(container.auth_service.verify)
    login_required = guards.login_required
    admin_required = guards.roles_required(Role.ADMIN)
    settings = container.settings_service

    @app.route("/api/settings", methods=["GET"], endpoint="settings_list")
    @login_required
    def list_settings():
        return ok([s.to_dict() for s in settings.get_all(category=request.args.get("category"))])

    @app.route("/api/settings/<key>", methods=["GET"], endpoint="settings_get")
    @login_required
    def get_setting(key: str):
        return ok(settings.get(key).to_dict())

    @app.route("/api/settings/<key>", methods=["PUT"], endpoint="settings_update")
    @admin_required
    def update_setting(key: str):
        setting = settings.update(key, json_body().get("value"))
        return ok(setting.to_dict(), message="Setting updated")
