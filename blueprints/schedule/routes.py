# blueprints/schedule/routes.py
from __future__ import annotations
from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required

from blueprints.auth.routes import current_actor
from .schemas import SheetCreateIn, SheetUpdateIn
from .services import ScheduleService

api_bp = Blueprint("schedule_api", __name__)


def schedules() -> ScheduleService:
    return current_app.extensions["timemate.schedules"]


def _owner_arg() -> str | None:
    # superadmin может адресовать лист другого админа: ?owner=<userId>
    owner = (request.args.get("owner") or "").strip()
    return owner or None


@api_bp.get("")
@login_required
def list_schedules():
    sheets = schedules().list_for(current_actor(), owner=_owner_arg())
    return jsonify({"success": True, "data": [s.to_dict() for s in sheets]})


@api_bp.post("")
@login_required
def create_schedule():
    js = SheetCreateIn.model_validate(request.get_json(silent=True) or {})
    sheet = schedules().create(current_actor(), js.sheet_name, js.settings, js.data)
    return jsonify({"success": True, "message": "Schedule created.", "data": sheet.to_dict()}), 201


@api_bp.put("/<sheet_name>")
@login_required
def update_schedule(sheet_name: str):
    js = SheetUpdateIn.model_validate(request.get_json(silent=True) or {})
    sheet = schedules().update(current_actor(), sheet_name, js.settings, js.data, owner=_owner_arg())
    return jsonify({"success": True, "message": "Schedule saved.", "data": sheet.to_dict()})


@api_bp.delete("/<sheet_name>")
@login_required
def delete_schedule(sheet_name: str):
    schedules().delete(current_actor(), sheet_name)
    return jsonify({"success": True, "message": "Schedule deleted."})
