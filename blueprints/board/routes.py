# blueprints/board/routes.py
from __future__ import annotations
from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required

from blueprints.auth.routes import current_actor
from .schemas import CommentIn, PostIn
from .services import BoardService

api_bp = Blueprint("board_api", __name__)


def board() -> BoardService:
    return current_app.extensions["timemate.board"]


def _body() -> dict:
    return request.get_json(silent=True) or {}


# ---------- posts ----------
@api_bp.get("")
@login_required
def list_posts():
    page = request.args.get("page", 1, type=int) or 1
    limit = request.args.get("limit", current_app.config.get("BOARD_PAGE_SIZE", 10), type=int) or 10
    limit = min(max(limit, 1), current_app.config.get("BOARD_MAX_PAGE_SIZE", 100))
    search = request.args.get("search", "")
    out = board().list_posts(current_actor(), page=max(page, 1), page_size=limit, search=search)
    return jsonify({"success": True, **out.to_dict()})


@api_bp.get("/<int:post_id>")
@login_required
def get_post(post_id: int):
    post = board().get_post(current_actor(), post_id)
    return jsonify({"success": True, "post": post.to_dict()})


@api_bp.post("")
@login_required
def create_post():
    data = PostIn.model_validate(_body())
    post = board().create_post(current_actor(), data.title, data.content)
    return jsonify({"success": True, "message": "Post created.", "postId": post.id}), 201


@api_bp.put("/<int:post_id>")
@login_required
def update_post(post_id: int):
    data = PostIn.model_validate(_body())
    board().update_post(current_actor(), post_id, data.title, data.content)
    return jsonify({"success": True, "message": "Post updated."})


@api_bp.delete("/<int:post_id>")
@login_required
def delete_post(post_id: int):
    board().delete_post(current_actor(), post_id)
    return jsonify({"success": True, "message": "Post deleted."})


# ---------- comments ----------
@api_bp.get("/<int:post_id>/comments")
@login_required
def list_comments(post_id: int):
    comments = board().list_comments(current_actor(), post_id)
    return jsonify({"success": True, "comments": [c.to_dict() for c in comments]})


@api_bp.post("/<int:post_id>/comments")
@login_required
def create_comment(post_id: int):
    data = CommentIn.model_validate(_body())
    comment = board().create_comment(current_actor(), post_id, data.content)
    return jsonify({"success": True, "message": "Comment added.", "commentId": comment.id}), 201


@api_bp.delete("/comments/<int:comment_id>")
@login_required
def delete_comment(comment_id: int):
    board().delete_comment(current_actor(), comment_id)
    return jsonify({"success": True, "message": "Comment deleted."})
