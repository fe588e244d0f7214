# blueprints/schedule/services.py
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from models import Role, Sheet, SheetTeacher, ViewMode
from blueprints.auth.credentials import Principal
from blueprints.auth.policy import Action, PolicyOptions, Target, authorize, enforce, sheet_target
from blueprints.core.errors import ConflictError, NotFoundError
from .schemas import SheetDataIn, SheetSettingsIn

log = logging.getLogger(__name__)


def normalize_title(title: str) -> str:
    return title.strip().lower()


def align_ids(ids: List[str], size: int) -> List[str]:
    """Подгоняет teacher_user_ids под число преподавателей (хвост режется / дополняется "")."""
    ids = list(ids or [])[:size]
    return ids + [""] * (size - len(ids))


class ScheduleService:
    def __init__(self, session, options: PolicyOptions | None = None):
        self.session = session
        self.options = options or PolicyOptions()

    # ---------- чтение ----------
    def find(self, owner_id: str, sheet_name: str) -> Optional[Sheet]:
        return self.session.execute(
            select(Sheet).where(Sheet.owner_id == owner_id, Sheet.sheet_name == sheet_name)
        ).scalar_one_or_none()

    def list_for(self, actor: Principal, owner: str | None = None) -> List[Sheet]:
        stmt = select(Sheet)
        if actor.role is Role.SUPERADMIN:
            if owner:
                stmt = stmt.where(Sheet.owner_id == owner)
        elif actor.role is Role.ADMIN:
            if owner and owner != actor.actor_id:
                enforce(actor, Action.SCHEDULE_READ, Target(owner_id=owner), self.options)
            stmt = stmt.where(Sheet.owner_id == actor.actor_id)
        else:
            member_of = select(SheetTeacher.sheet_id).where(SheetTeacher.user_id == actor.actor_id)
            stmt = stmt.where(Sheet.id.in_(member_of))

        rows = self.session.execute(stmt.order_by(Sheet.created_at.asc(), Sheet.id.asc())).scalars().all()
        return [s for s in rows
                if authorize(actor, Action.SCHEDULE_READ,
                             sheet_target(s.owner_id, s.teacher_user_ids), self.options)]

    # ---------- запись ----------
    def create(self, actor: Principal, sheet_name: str, settings: SheetSettingsIn, data: SheetDataIn) -> Sheet:
        enforce(actor, Action.SCHEDULE_CREATE, None, self.options)
        owner_id = actor.actor_id

        if self.find(owner_id, sheet_name) is not None:
            raise ConflictError("A sheet with this name already exists.")
        title_key = normalize_title(settings.title)
        self._ensure_title_free(owner_id, title_key)

        sheet = Sheet(
            owner_id=owner_id,
            sheet_name=sheet_name,
            title=settings.title,
            title_key=title_key,
            num_of_teachers=settings.num_of_teachers,
            selected_days=list(settings.selected_days),
            start_time=settings.start_time,
            end_time=settings.end_time,
            interval=settings.interval,
            teacher_names=list(settings.teacher_names),
            # при создании преподаватели ещё не привязаны
            teacher_user_ids=[""] * settings.num_of_teachers,
            day_dates=dict(settings.day_dates or {}),
            cell_texts=data.cells_json() or {},
            merged_blocks=data.blocks_json() or [],
            view_mode=(data.view_mode or ViewMode.BY_DAY).value,
        )
        self.session.add(sheet)
        with self._unique_guard():
            self.session.commit()
        log.info("sheet %s/%s created", owner_id, sheet_name)
        return sheet

    def update(self, actor: Principal, sheet_name: str, settings: SheetSettingsIn, data: SheetDataIn,
               owner: str | None = None) -> Sheet:
        owner_id = owner or actor.actor_id
        enforce(actor, Action.SCHEDULE_UPDATE, Target(owner_id=owner_id), self.options)

        sheet = self.find(owner_id, sheet_name)
        if sheet is None:
            raise NotFoundError("Schedule not found.")

        title_key = normalize_title(settings.title)
        if title_key != sheet.title_key:
            self._ensure_title_free(owner_id, title_key, exclude_id=sheet.id)

        n = settings.num_of_teachers
        if settings.teacher_user_ids is not None:
            ids = list(settings.teacher_user_ids)
        else:
            ids = align_ids(sheet.teacher_user_ids, n)

        sheet.title = settings.title
        sheet.title_key = title_key
        sheet.num_of_teachers = n
        sheet.selected_days = list(settings.selected_days)
        sheet.start_time = settings.start_time
        sheet.end_time = settings.end_time
        sheet.interval = settings.interval
        sheet.teacher_names = list(settings.teacher_names)
        sheet.teacher_user_ids = ids
        if settings.day_dates is not None:
            sheet.day_dates = dict(settings.day_dates)

        cells = data.cells_json()
        if cells is not None:
            sheet.cell_texts = cells
        blocks = data.blocks_json()
        if blocks is not None:
            sheet.merged_blocks = blocks
        if data.view_mode is not None:
            sheet.view_mode = data.view_mode.value

        # flush в _sync_members уже пишет title_key: гонку по uq ловим и там
        with self._unique_guard():
            self._sync_members(sheet)
            self.session.commit()
        return sheet

    def delete(self, actor: Principal, sheet_name: str) -> None:
        owner_id = actor.actor_id
        enforce(actor, Action.SCHEDULE_DELETE, Target(owner_id=owner_id), self.options)
        sheet = self.find(owner_id, sheet_name)
        if sheet is None:
            raise NotFoundError("Schedule not found.")
        self.session.delete(sheet)
        self.session.commit()
        log.info("sheet %s/%s deleted", owner_id, sheet_name)

    # ---------- helpers ----------
    def _ensure_title_free(self, owner_id: str, title_key: str, exclude_id: int | None = None) -> None:
        stmt = select(Sheet.id).where(Sheet.owner_id == owner_id, Sheet.title_key == title_key)
        if exclude_id is not None:
            stmt = stmt.where(Sheet.id != exclude_id)
        if self.session.execute(stmt.limit(1)).first() is not None:
            raise ConflictError("A schedule with the same title already exists.")

    def _sync_members(self, sheet: Sheet) -> None:
        sheet.members.clear()
        # сначала удаляем старые строки, иначе упрёмся в uq (sheet_id, position)
        self.session.flush()
        for pos, uid in enumerate(sheet.teacher_user_ids or []):
            if uid:
                sheet.members.append(SheetTeacher(position=pos, user_id=uid))

    @contextmanager
    def _unique_guard(self):
        try:
            yield
        except IntegrityError as e:
            # гонка двух запросов с одним именем или заголовком: вторую отбивает индекс
            self.session.rollback()
            raise ConflictError("A schedule with the same name or title already exists.") from e
