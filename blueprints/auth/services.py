# blueprints/auth/services.py
from __future__ import annotations
import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from models import Account, Role, Sheet, SheetTeacher
from blueprints.core.errors import (
    AuthenticationError, AuthorizationError, ConflictError, NotFoundError,
    UnexpectedError, ValidationError,
)
from .credentials import CredentialService, Principal
from .mailer import MailError
from .policy import Action, PolicyOptions, Target, enforce

log = logging.getLogger(__name__)

# без 0/O, 1/l/I
TEMP_PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghjkmnpqrstuvwxyz23456789"
TEMP_PASSWORD_LENGTH = 8


def generate_temp_password(length: int = TEMP_PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(TEMP_PASSWORD_ALPHABET) for _ in range(length))


@dataclass
class LoginResult:
    token: str
    user_id: str
    email: str
    role: Role

    def to_dict(self) -> dict:
        return {"token": self.token, "userId": self.user_id, "email": self.email, "role": self.role.value}


@dataclass(frozen=True)
class SuperadminIdentity:
    user_id: str
    password: str
    email: str = ""

    def matches(self, user_id: str, password: str) -> bool:
        return (hmac.compare_digest(user_id.encode(), self.user_id.encode())
                and hmac.compare_digest(password.encode(), self.password.encode()))

    @classmethod
    def from_config(cls, config) -> Optional["SuperadminIdentity"]:
        uid, pw = config.get("SUPERADMIN_USER_ID"), config.get("SUPERADMIN_PASSWORD")
        if not uid or not pw:
            return None
        return cls(uid, pw, config.get("SUPERADMIN_EMAIL") or "")


class AccountService:
    def __init__(self, session, credentials: CredentialService, mailer,
                 options: PolicyOptions | None = None,
                 superadmin: SuperadminIdentity | None = None,
                 min_password_length: int = 4):
        self.session = session
        self.credentials = credentials
        self.mailer = mailer
        self.options = options or PolicyOptions()
        self.superadmin = superadmin
        self.min_password_length = min_password_length

    # ---------- helpers ----------
    def find(self, user_id: str) -> Optional[Account]:
        return self.session.execute(
            select(Account).where(Account.user_id == user_id)
        ).scalar_one_or_none()

    def _get_or_404(self, user_id: str) -> Account:
        account = self.find(user_id)
        if account is None:
            raise NotFoundError("User not found.")
        return account

    def _check_length(self, password: str, label: str = "Password") -> None:
        if len(password) < self.min_password_length:
            raise ValidationError(f"{label} must be at least {self.min_password_length} characters.")

    # ---------- registration / login ----------
    def register(self, user_id: str, password: str, email: str, role: str | None = None) -> Account:
        self._check_length(password)
        # superadmin не регистрируется, ему доступна только роль из конфига
        account_role = Role.ADMIN if role == Role.ADMIN.value else Role.USER

        if self.superadmin and user_id == self.superadmin.user_id:
            raise ConflictError("This user ID is already taken.")
        if self.find(user_id) is not None:
            raise ConflictError("This user ID is already taken.")

        account = Account(
            user_id=user_id,
            password_hash=generate_password_hash(password),
            email=email,
            role=account_role.value,
            registered_teachers=[],
        )
        self.session.add(account)
        try:
            self.session.commit()
        except IntegrityError as e:
            # параллельная регистрация того же id: отбивает уникальный индекс
            self.session.rollback()
            raise ConflictError("This user ID is already taken.") from e
        log.info("registered %s as %s", user_id, account_role.value)
        return account

    def login(self, user_id: str, password: str) -> LoginResult:
        if self.superadmin and self.superadmin.matches(user_id, password):
            token = self.credentials.issue(self.superadmin.user_id, Role.SUPERADMIN)
            return LoginResult(token, self.superadmin.user_id, self.superadmin.email, Role.SUPERADMIN)

        account = self._get_or_404(user_id)
        if not check_password_hash(account.password_hash, password):
            log.warning("failed login for %s", user_id)
            raise AuthenticationError("Incorrect password.")
        role = account.role_enum
        return LoginResult(self.credentials.issue(account.user_id, role), account.user_id, account.email, role)

    # ---------- passwords ----------
    def reset_password(self, user_id: str, email: str) -> None:
        """Временный пароль сохраняется ДО отправки письма.

        Если письмо не ушло, пароль уже сменён и назад не откатывается:
        пользователь получает 500 и повторяет сброс.
        """
        account = self._get_or_404(user_id)
        if not account.email or account.email.strip().lower() != email.strip().lower():
            raise AuthorizationError("Email does not match our records.")

        temp = generate_temp_password()
        account.password_hash = generate_password_hash(temp)
        self.session.commit()

        try:
            self.mailer.send(
                account.email,
                "Your temporary password",
                f"Hello {account.user_id},\n\n"
                f"Your temporary password is: {temp}\n"
                "Please sign in and change it right away.\n",
            )
        except MailError as e:
            log.error("password for %s was reset but the mail failed: %s", user_id, e)
            raise UnexpectedError("Failed to send the temporary password email.") from e

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        self._check_length(new_password, "New password")
        account = self._get_or_404(user_id)
        if not check_password_hash(account.password_hash, current_password):
            raise AuthenticationError("Current password is incorrect.")
        if check_password_hash(account.password_hash, new_password):
            raise ValidationError("New password must be different from the current password.")
        account.password_hash = generate_password_hash(new_password)
        self.session.commit()

    # ---------- teacher roster (admin) ----------
    def verify_teacher(self, actor: Principal, teacher_id: str) -> Account:
        enforce(actor, Action.ROSTER_VERIFY, Target(owner_id=actor.actor_id), self.options)
        teacher = self.find(teacher_id)
        if teacher is None:
            raise NotFoundError("No account with this ID.")
        if teacher.role_enum is not Role.USER:
            raise ValidationError("This account is not a teacher account.")
        return teacher

    def save_roster(self, actor: Principal, teachers: List[str]) -> List[str]:
        enforce(actor, Action.ROSTER_SAVE, Target(owner_id=actor.actor_id), self.options)
        if not all(isinstance(t, str) for t in teachers):
            raise ValidationError("Teachers must be a list of user IDs.")
        admin = self._get_or_404(actor.actor_id)
        admin.registered_teachers = list(teachers)
        self.session.commit()
        return admin.registered_teachers

    def get_roster(self, actor: Principal) -> List[str]:
        enforce(actor, Action.ROSTER_READ, Target(owner_id=actor.actor_id), self.options)
        admin = self._get_or_404(actor.actor_id)
        return list(admin.registered_teachers or [])

    # ---------- account deletion ----------
    def delete_account(self, actor: Principal, user_id: str, password: str) -> None:
        enforce(actor, Action.ACCOUNT_DELETE, Target(owner_id=user_id), self.options)
        account = self._get_or_404(user_id)
        if not check_password_hash(account.password_hash, password):
            raise AuthenticationError("Incorrect password.")

        self._release_teacher(user_id)
        if account.role_enum is Role.ADMIN:
            for sheet in self.session.execute(select(Sheet).where(Sheet.owner_id == user_id)).scalars():
                self.session.delete(sheet)
        self.session.delete(account)
        self.session.commit()
        log.info("account %s deleted", user_id)

    def _release_teacher(self, user_id: str) -> None:
        """Убираем удаляемого преподавателя из листов и списков админов."""
        links = self.session.execute(
            select(SheetTeacher).where(SheetTeacher.user_id == user_id)
        ).scalars().all()
        for link in links:
            sheet = link.sheet
            ids = list(sheet.teacher_user_ids or [])
            if link.position < len(ids):
                ids[link.position] = ""
            sheet.teacher_user_ids = ids
            self.session.delete(link)

        admins = self.session.execute(select(Account).where(Account.role == Role.ADMIN.value)).scalars()
        for admin in admins:
            roster = list(admin.registered_teachers or [])
            if user_id in roster:
                admin.registered_teachers = [t for t in roster if t != user_id]
