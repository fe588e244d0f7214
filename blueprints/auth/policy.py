# blueprints/auth/policy.py
"""
Единая точка решений о доступе.

authorize(actor, action, target) это чистая функция: никаких запросов к БД,
всё нужное состояние (владелец, список преподавателей, флаг объявления)
вызывающий код передаёт в Target, прочитав его из БД в том же запросе.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Mapping, Optional

from models import Role
from blueprints.core.errors import AuthorizationError

log = logging.getLogger(__name__)

MODERATION_STRICT = "strict"
MODERATION_ADMIN = "admin"


class Action(str, Enum):
    SCHEDULE_CREATE = "schedule.create"
    SCHEDULE_READ = "schedule.read"
    SCHEDULE_UPDATE = "schedule.update"
    SCHEDULE_DELETE = "schedule.delete"
    POST_LIST = "post.list"
    POST_READ = "post.read"
    POST_CREATE = "post.create"
    POST_UPDATE = "post.update"
    POST_DELETE = "post.delete"
    COMMENT_READ = "comment.read"
    COMMENT_CREATE = "comment.create"
    COMMENT_DELETE = "comment.delete"
    ROSTER_VERIFY = "roster.verify"
    ROSTER_SAVE = "roster.save"
    ROSTER_READ = "roster.read"
    ACCOUNT_DELETE = "account.delete"

    @property
    def resource(self) -> str:
        return self.value.split(".", 1)[0]


@dataclass(frozen=True)
class Target:
    owner_id: Optional[str] = None        # владелец / автор
    members: tuple[str, ...] = ()         # teacher_user_ids листа
    is_notice: bool = False


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(reason: str) -> Decision:
    return Decision(False, reason)


@dataclass(frozen=True)
class PolicyOptions:
    moderation: str = MODERATION_STRICT
    block_user_board: bool = False
    notice_comments_superadmin_exempt: bool = False

    @classmethod
    def from_config(cls, config: Mapping) -> "PolicyOptions":
        moderation = (config.get("BOARD_MODERATION") or MODERATION_STRICT).lower()
        if moderation not in (MODERATION_STRICT, MODERATION_ADMIN):
            raise ValueError(f"unknown BOARD_MODERATION: {moderation!r}")
        return cls(
            moderation=moderation,
            block_user_board=bool(config.get("BOARD_BLOCK_USER_ROLE", False)),
            notice_comments_superadmin_exempt=bool(config.get("NOTICE_COMMENTS_SUPERADMIN_EXEMPT", False)),
        )


# ---------- правила по типам ресурсов ----------
def _schedule_rules(actor, action: Action, target: Target, opts: PolicyOptions) -> Decision:
    role = actor.role
    is_owner = target.owner_id is None or target.owner_id == actor.actor_id

    if action is Action.SCHEDULE_CREATE:
        if role is Role.ADMIN:
            return ALLOW
        return deny("Only admins can create schedules.")

    if action is Action.SCHEDULE_DELETE:
        if role is Role.ADMIN and is_owner:
            return ALLOW
        return deny("Only the owning admin can delete this schedule.")

    if action is Action.SCHEDULE_UPDATE:
        if role is Role.SUPERADMIN:
            return ALLOW
        if role is Role.ADMIN and is_owner:
            return ALLOW
        return deny("You do not have permission to edit schedules.")

    # SCHEDULE_READ
    if role is Role.SUPERADMIN:
        return ALLOW
    if role is Role.ADMIN:
        return ALLOW if is_owner else deny("This schedule belongs to another admin.")
    if actor.actor_id in target.members:
        return ALLOW
    return deny("You are not assigned to this schedule.")


def _board_access(actor, opts: PolicyOptions) -> Decision:
    if opts.block_user_board and actor.role is Role.USER:
        return deny("You do not have access to the board.")
    return ALLOW


def _moderates(actor, opts: PolicyOptions) -> bool:
    if opts.moderation == MODERATION_ADMIN:
        return actor.role in (Role.ADMIN, Role.SUPERADMIN)
    return False


def _post_rules(actor, action: Action, target: Target, opts: PolicyOptions) -> Decision:
    access = _board_access(actor, opts)
    if not access:
        return access
    is_author = target.owner_id == actor.actor_id

    if action is Action.POST_UPDATE:
        if is_author or _moderates(actor, opts):
            return ALLOW
        return deny("You can only edit your own posts.")

    if action is Action.POST_DELETE:
        if is_author or actor.role is Role.SUPERADMIN or _moderates(actor, opts):
            return ALLOW
        return deny("You do not have permission to delete this post.")

    # POST_LIST / POST_READ / POST_CREATE
    return ALLOW


def _comment_rules(actor, action: Action, target: Target, opts: PolicyOptions) -> Decision:
    access = _board_access(actor, opts)
    if not access:
        return access

    if action is Action.COMMENT_CREATE:
        if target.is_notice:
            if actor.role is Role.SUPERADMIN and opts.notice_comments_superadmin_exempt:
                return ALLOW
            return deny("Comments are not allowed on notices.")
        return ALLOW

    if action is Action.COMMENT_DELETE:
        if target.owner_id == actor.actor_id or actor.role is Role.SUPERADMIN or _moderates(actor, opts):
            return ALLOW
        return deny("You do not have permission to delete this comment.")

    return ALLOW


def _roster_rules(actor, action: Action, target: Target, opts: PolicyOptions) -> Decision:
    if actor.role is not Role.ADMIN:
        return deny("Only admins can manage teachers.")
    if target.owner_id is not None and target.owner_id != actor.actor_id:
        return deny("You can only manage your own teachers.")
    return ALLOW


def _account_rules(actor, action: Action, target: Target, opts: PolicyOptions) -> Decision:
    if target.owner_id != actor.actor_id:
        return deny("You can only delete your own account.")
    return ALLOW


_RULES: Dict[str, Callable[..., Decision]] = {
    "schedule": _schedule_rules,
    "post": _post_rules,
    "comment": _comment_rules,
    "roster": _roster_rules,
    "account": _account_rules,
}


def authorize(actor, action: Action, target: Target | None = None,
              options: PolicyOptions | None = None) -> Decision:
    rules = _RULES[action.resource]
    return rules(actor, action, target or Target(), options or PolicyOptions())


def enforce(actor, action: Action, target: Target | None = None,
            options: PolicyOptions | None = None) -> None:
    decision = authorize(actor, action, target, options)
    if not decision:
        log.warning("denied %s for %s (%s): %s",
                    action.value, actor.actor_id, actor.role.value, decision.reason)
        raise AuthorizationError(decision.reason)


def sheet_target(owner_id: str, members: Iterable[str] = ()) -> Target:
    return Target(owner_id=owner_id, members=tuple(m for m in members if m))
