from __future__ import annotations
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

NonEmpty = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
# пароль не обрезаем: пробелы значимы
Secret = Annotated[str, StringConstraints(min_length=1)]


class _In(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RegisterIn(_In):
    user_id: NonEmpty = Field(alias="userId", max_length=64)
    password: Secret
    email: NonEmpty = Field(max_length=255)
    role: Optional[str] = None


class LoginIn(_In):
    user_id: NonEmpty = Field(alias="userId")
    password: Secret


class ResetPasswordIn(_In):
    user_id: NonEmpty = Field(alias="userId")
    email: NonEmpty


class ChangePasswordIn(_In):
    user_id: NonEmpty = Field(alias="userId")
    current_password: Secret = Field(alias="currentPassword")
    new_password: Secret = Field(alias="newPassword")


class VerifyTeacherIn(_In):
    teacher_id: NonEmpty = Field(alias="teacherId")


class RosterIn(_In):
    teachers: List[str]


class DeleteAccountIn(_In):
    user_id: NonEmpty = Field(alias="userId")
    password: Secret
