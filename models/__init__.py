from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import (
    ForeignKey, UniqueConstraint, Index, Boolean, DateTime, Integer, String, Text, JSON
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from extensions import db


def utcnow() -> datetime:
    # naive UTC, как хранит SQLite
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() + "Z" if value else None


# ---------- Enums ----------
class Role(str, PyEnum):
    USER = "user"            # преподаватель
    ADMIN = "admin"          # владелец расписаний
    SUPERADMIN = "superadmin"  # только из конфига

    @classmethod
    def parse(cls, raw) -> "Role | None":
        try:
            return cls(raw)
        except ValueError:
            return None


class ViewMode(str, PyEnum):
    BY_DAY = "byDay"
    BY_TEACHER = "byTeacher"


# ---------- Identity ----------
class Account(db.Model):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=Role.USER.value)
    registered_teachers: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    @property
    def role_enum(self) -> Role:
        return Role.parse(self.role) or Role.USER

    def __repr__(self):
        return f"<Account {self.user_id}>"


# ---------- Schedules ----------
class Sheet(db.Model):
    __tablename__ = "schedules"

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    sheet_name: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    title_key: Mapped[str] = mapped_column(String(255), nullable=False)

    num_of_teachers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    selected_days: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    start_time: Mapped[str] = mapped_column(String(16), nullable=False)
    end_time: Mapped[str] = mapped_column(String(16), nullable=False)
    interval: Mapped[str] = mapped_column(String(16), nullable=False)
    teacher_names: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    teacher_user_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    day_dates: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    cell_texts: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    merged_blocks: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    view_mode: Mapped[str] = mapped_column(String(16), nullable=False, default=ViewMode.BY_DAY.value)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    members = relationship("SheetTeacher", back_populates="sheet",
                           cascade="all, delete-orphan", order_by="SheetTeacher.position")

    __table_args__ = (
        UniqueConstraint("owner_id", "sheet_name", name="uq_schedule_owner_sheet"),
        UniqueConstraint("owner_id", "title_key", name="uq_schedule_owner_title"),
        Index("ix_schedule_owner_created", "owner_id", "created_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.owner_id,
            "sheetName": self.sheet_name,
            "title": self.title,
            "numOfTeachers": str(self.num_of_teachers),
            "selectedDays": list(self.selected_days or []),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "interval": self.interval,
            "teacherNames": list(self.teacher_names or []),
            "teacherUserIds": list(self.teacher_user_ids or []),
            "dayDates": dict(self.day_dates or {}),
            "cellTexts": dict(self.cell_texts or {}),
            "mergedBlocks": list(self.merged_blocks or []),
            "viewMode": self.view_mode,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class SheetTeacher(db.Model):
    """Индекс «преподаватель → лист»: непустые элементы teacher_user_ids."""
    __tablename__ = "sheet_teachers"

    id: Mapped[int] = mapped_column(primary_key=True)
    sheet_id: Mapped[int] = mapped_column(ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    sheet = relationship("Sheet", back_populates="members")

    __table_args__ = (
        UniqueConstraint("sheet_id", "position", name="uq_sheet_teacher_position"),
    )


# ---------- Board ----------
class Post(db.Model):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(String(64), nullable=False)
    author_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    author_role: Mapped[str] = mapped_column(String(16), nullable=False)
    is_notice: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    comments = relationship("Comment", back_populates="post",
                            cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index("ix_post_author_created", "author_id", "created_at"),
        Index("ix_post_notice_created", "is_notice", "created_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "authorId": self.author_id,
            "authorEmail": self.author_email,
            "authorRole": self.author_role,
            "isNotice": bool(self.is_notice),
            "views": self.views,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class Comment(db.Model):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(primary_key=True)
    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(String(64), nullable=False)
    author_role: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    post = relationship("Post", back_populates="comments")

    __table_args__ = (
        Index("ix_comment_post_created", "post_id", "created_at"),
        Index("ix_comment_author_created", "author_id", "created_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "postId": self.post_id,
            "content": self.content,
            "authorId": self.author_id,
            "authorRole": self.author_role,
            "createdAt": _iso(self.created_at),
        }
