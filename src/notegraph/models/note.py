"""
Data models for notes and their relations
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Keys starting with this character address a note by numeric id
ID_SENTINEL = "@"

# First body line of a record whose content is an asset path
IMAGE_MARKER = "image"

# Page file names the publisher writes next to note directories
RESERVED_PAGE_SUFFIX = ".html"


def _single_line(value: str, what: str) -> str:
    if "\n" in value or "\r" in value:
        raise ValueError(f"{what} must be a single line")
    if not value.strip():
        raise ValueError(f"{what} must not be blank")
    return value


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError("timestamp must carry a UTC offset")
    return value


class TextContent(BaseModel):
    """Plain text body: one string per paragraph."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    paragraphs: List[str] = Field(default_factory=list)

    @field_validator("paragraphs")
    @classmethod
    def _check_paragraphs(cls, value: List[str]) -> List[str]:
        for paragraph in value:
            _single_line(paragraph, "paragraph")
        if value and value[0].strip() == IMAGE_MARKER:
            raise ValueError(f"first paragraph must not be the {IMAGE_MARKER!r} marker")
        return value


class ImageContent(BaseModel):
    """Body referencing an external asset (image) by relative path."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["image"] = "image"
    path: str

    @field_validator("path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        return _single_line(value, "asset path")


NoteContent = Annotated[Union[TextContent, ImageContent], Field(discriminator="kind")]


class Note(BaseModel):
    """A single content unit of the knowledge base."""
    model_config = ConfigDict(frozen=True)

    id: int = Field(gt=0)
    alternative: Optional[str] = Field(default=None, description="Human-readable alias, unique across the graph")
    create_at: datetime
    update_at: List[datetime] = Field(default_factory=list, description="Append-only, one entry per edit")
    title: Optional[str] = None
    content: NoteContent = Field(default_factory=TextContent)

    @field_validator("alternative")
    @classmethod
    def _check_alternative(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        _single_line(value, "alternative")
        if value.startswith(ID_SENTINEL):
            raise ValueError(f"alternative must not start with {ID_SENTINEL!r}")
        if "/" in value or value in (".", ".."):
            raise ValueError("alternative must be usable as a path segment")
        if value.lower().endswith(RESERVED_PAGE_SUFFIX):
            raise ValueError(f"alternative must not end with {RESERVED_PAGE_SUFFIX!r}")
        return value

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _single_line(value, "title")

    @field_validator("create_at")
    @classmethod
    def _check_create_at(cls, value: datetime) -> datetime:
        return _aware(value)

    @field_validator("update_at")
    @classmethod
    def _check_update_at(cls, value: List[datetime]) -> List[datetime]:
        for stamp in value:
            _aware(stamp)
        return value

    @property
    def key(self) -> str:
        """Canonical lookup key: the alias if present, else '@<id>'."""
        return self.alternative if self.alternative else f"{ID_SENTINEL}{self.id}"

    @property
    def last_update(self) -> Optional[datetime]:
        # Hand-edited records may list stamps out of order
        return max(self.update_at) if self.update_at else None


class EdgeKind(str, Enum):
    OWN = "own"      # parent -> child, at most one per child
    CAUSE = "cause"  # predecessor -> note


class NoteRelation(BaseModel):
    """Defines an edge in the graph."""
    model_config = ConfigDict(frozen=True)

    source_id: int
    target_id: int
    kind: EdgeKind


class ConnectedNote(BaseModel):
    """A note together with the relations stored in its record.

    This is the record form the codec reads and writes, and the view the
    graph derives from its current edges when a note is rewritten.
    """
    model_config = ConfigDict(frozen=True)

    note: Note
    parent_id: Optional[int] = None
    previous_ids: List[int] = Field(default_factory=list)
    top_level: bool = False
