# blueprints/auth/routes.py
from __future__ import annotations
import logging
from typing import Optional

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from extensions import limiter, login_manager
from blueprints.core.errors import error_response
from .credentials import Principal, bearer_token
from .schemas import (
    ChangePasswordIn, DeleteAccountIn, LoginIn, RegisterIn, ResetPasswordIn,
    RosterIn, VerifyTeacherIn,
)
from .services import AccountService

log = logging.getLogger(__name__)

api_bp = Blueprint("auth_api", __name__)


def accounts() -> AccountService:
    return current_app.extensions["timemate.accounts"]


def current_actor() -> Principal:
    return current_user._get_current_object()


def _auth_limit() -> str:
    return current_app.config.get("AUTH_RATE_LIMIT", "10 per minute")


# ---------- загрузка пользователя из Bearer-токена ----------
@login_manager.request_loader
def load_principal(req) -> Optional[Principal]:
    token = bearer_token(req.headers.get("Authorization"))
    svc = accounts()
    principal = svc.credentials.validate(token)
    if principal is None:
        return None
    if principal.is_superadmin:
        if svc.superadmin is None or principal.actor_id != svc.superadmin.user_id:
            return None
        return principal
    # роль берём из БД, а не из токена: её могли поменять
    account = svc.find(principal.actor_id)
    if account is None:
        return None
    return Principal(actor_id=account.user_id, role=account.role_enum)


@login_manager.unauthorized_handler
def _unauth():
    if request.headers.get("Authorization"):
        return error_response("Invalid or expired token.", 401)
    return error_response("Authentication token is missing.", 401)


def _body() -> dict:
    return request.get_json(silent=True) or {}


# ---------- публичные ----------
@api_bp.post("/register")
@limiter.limit(_auth_limit)
def register():
    data = RegisterIn.model_validate(_body())
    accounts().register(data.user_id, data.password, data.email, data.role)
    return jsonify({"success": True, "message": "Registration completed."}), 201


@api_bp.post("/login")
@limiter.limit(_auth_limit)
def login():
    data = LoginIn.model_validate(_body())
    result = accounts().login(data.user_id, data.password)
    return jsonify({"success": True, "message": "Login successful.", **result.to_dict()})


@api_bp.post("/reset-password")
@limiter.limit(_auth_limit)
def reset_password():
    data = ResetPasswordIn.model_validate(_body())
    accounts().reset_password(data.user_id, data.email)
    return jsonify({"success": True, "message": "A temporary password has been sent to your email."})


@api_bp.post("/change-password")
def change_password():
    data = ChangePasswordIn.model_validate(_body())
    accounts().change_password(data.user_id, data.current_password, data.new_password)
    return jsonify({"success": True, "message": "Password changed."})


# ---------- только с токеном ----------
@api_bp.post("/verify-teacher")
@login_required
def verify_teacher():
    data = VerifyTeacherIn.model_validate(_body())
    teacher = accounts().verify_teacher(current_actor(), data.teacher_id)
    return jsonify({"success": True, "verified": True, "userId": teacher.user_id, "message": "Verified."})


@api_bp.get("/registered-teachers")
@login_required
def get_registered_teachers():
    return jsonify({"success": True, "teachers": accounts().get_roster(current_actor())})


@api_bp.post("/registered-teachers")
@login_required
def save_registered_teachers():
    data = RosterIn.model_validate(_body())
    teachers = accounts().save_roster(current_actor(), data.teachers)
    return jsonify({"success": True, "teachers": teachers, "message": "Saved."})


@api_bp.delete("/delete-account")
@login_required
def delete_account():
    data = DeleteAccountIn.model_validate(_body())
    accounts().delete_account(current_actor(), data.user_id, data.password)
    return jsonify({"success": True, "message": "Your account has been deleted."})
