from __future__ import annotations
from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

NonEmpty = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class PostIn(BaseModel):
    title: NonEmpty = Field(max_length=255)
    content: NonEmpty = Field(max_length=20000)


class CommentIn(BaseModel):
    content: NonEmpty = Field(max_length=5000)

