from __future__ import annotations
from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator, model_validator

from models import ViewMode

NonEmpty = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

MAX_TEACHERS = 100


class _In(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------- ячейки и объединения ----------
class CellIn(_In):
    text: str = ""
    bold: Optional[bool] = None
    line_through: Optional[bool] = Field(None, alias="lineThrough")
    font_size: Optional[float] = Field(None, alias="fontSize", gt=0)
    bg_color: Optional[str] = Field(None, alias="bgColor", max_length=32)


class MergedBlockIn(_In):
    day: NonEmpty
    col_idx: int = Field(alias="colIdx", ge=0)
    start_row: int = Field(alias="startRow", ge=0)
    end_row: int = Field(alias="endRow", ge=0)

    @model_validator(mode="after")
    def check_rows(self):
        if self.end_row < self.start_row:
            raise ValueError("endRow must be >= startRow")
        return self


# ---------- настройки листа ----------
class SheetSettingsIn(_In):
    title: NonEmpty = Field(max_length=255)
    num_of_teachers: int = Field(alias="numOfTeachers", ge=0, le=MAX_TEACHERS)
    selected_days: List[str] = Field(alias="selectedDays")
    start_time: NonEmpty = Field(alias="startTime")
    end_time: NonEmpty = Field(alias="endTime")
    interval: NonEmpty
    teacher_names: List[str] = Field(alias="teacherNames")
    teacher_user_ids: Optional[List[str]] = Field(None, alias="teacherUserIds")
    day_dates: Optional[Dict[str, str]] = Field(None, alias="dayDates")

    @field_validator("interval", "start_time", "end_time", mode="before")
    @classmethod
    def _stringify(cls, v):
        # старые клиенты шлют числа
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("teacher_user_ids")
    @classmethod
    def _strip_ids(cls, v):
        if v is None:
            return v
        return [s.strip() for s in v]

    @model_validator(mode="after")
    def check_alignment(self):
        if len(self.teacher_names) != self.num_of_teachers:
            raise ValueError("teacherNames must have numOfTeachers entries")
        if self.teacher_user_ids is not None and len(self.teacher_user_ids) != self.num_of_teachers:
            raise ValueError("teacherUserIds must have numOfTeachers entries")
        return self


class SheetDataIn(_In):
    cell_texts: Optional[Dict[str, CellIn]] = Field(None, alias="cellTexts")
    merged_blocks: Optional[List[MergedBlockIn]] = Field(None, alias="mergedBlocks")
    view_mode: Optional[ViewMode] = Field(None, alias="viewMode")

    def cells_json(self) -> Optional[dict]:
        if self.cell_texts is None:
            return None
        return {k: c.model_dump(by_alias=True, exclude_none=True) for k, c in self.cell_texts.items()}

    def blocks_json(self) -> Optional[list]:
        if self.merged_blocks is None:
            return None
        return [b.model_dump(by_alias=True) for b in self.merged_blocks]


class SheetCreateIn(_In):
    sheet_name: NonEmpty = Field(alias="sheetName", max_length=255)
    settings: SheetSettingsIn
    data: SheetDataIn


class SheetUpdateIn(_In):
    settings: SheetSettingsIn
    data: SheetDataIn = Field(default_factory=SheetDataIn)
