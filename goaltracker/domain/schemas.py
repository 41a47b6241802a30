"""Request schemas for goals, milestones, notes and goal listing.

The API declares these as body and query models, so FastAPI validates every
write before it reaches GoalService. Field problems come back as one 400
response (see main.py). Scripts and tests that call the service directly
build the same models with parse_payload().
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Annotated, Any, TypeVar

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from goaltracker.domain.entities import GoalFilter
from goaltracker.domain.enums import GoalCategory, GoalPriority, GoalStatus
from goaltracker.domain.errors import GoalValidationError

MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MAX_NOTE_LENGTH = 1000
MAX_TAG_LENGTH = 50

_DATETIME = TypeAdapter(datetime)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _calendar_date(value: Any) -> Any:
    """Accept full ISO 8601 timestamps for date fields, keeping only the date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value.strip()) > 10:
        try:
            return _DATETIME.validate_python(value.strip()).date()
        except ValidationError:
            raise ValueError("must be a valid ISO 8601 date") from None
    return value


CalendarDate = Annotated[date, BeforeValidator(_calendar_date)]
Tag = Annotated[str, Field(max_length=MAX_TAG_LENGTH)]
Progress = Annotated[StrictInt, Field(ge=0, le=100)]


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    def changes(self) -> dict[str, Any]:
        """Fields explicitly sent by the caller, for partial updates."""
        return {name: getattr(self, name) for name in self.model_fields_set}


def _reject_null(value: Any) -> Any:
    if value is None:
        raise ValueError("must not be null")
    return value


# ---------------------------------------------------------------------------
# Milestones
# ---------------------------------------------------------------------------


class MilestoneCreate(_Payload):
    title: str = Field(..., min_length=1)
    description: str = ""
    target_date: CalendarDate | None = None
    completed: StrictBool = False


class MilestoneReplace(MilestoneCreate):
    """One entry of a wholesale milestone replace.

    An ``id`` keeps (and edits) the existing milestone; entries without one
    are new milestones. Ids are never accepted on create.
    """

    id: uuid.UUID | None = None


class MilestoneUpdate(_Payload):
    title: str | None = Field(None, min_length=1)
    description: str | None = None
    target_date: CalendarDate | None = None
    completed: StrictBool | None = None

    @field_validator("title", "description", "completed", mode="before")
    @classmethod
    def _present_fields_not_null(cls, value: Any) -> Any:
        return _reject_null(value)


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


class GoalCreate(_Payload):
    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    description: str = Field("", max_length=MAX_DESCRIPTION_LENGTH)
    category: GoalCategory
    priority: GoalPriority = GoalPriority.MEDIUM
    status: GoalStatus | None = None
    target_date: CalendarDate
    progress: Progress = 0
    tags: list[Tag] = Field(default_factory=list)
    milestones: list[MilestoneCreate] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def _unique_tags(cls, tags: list[str]) -> list[str]:
        """Drop empty tags and collapse duplicates, first occurrence wins."""
        return list(dict.fromkeys(tag for tag in tags if tag))


class GoalUpdate(_Payload):
    """Partial goal update. Only the fields present in the body are applied."""

    title: str | None = Field(None, min_length=1, max_length=MAX_TITLE_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    category: GoalCategory | None = None
    priority: GoalPriority | None = None
    status: GoalStatus | None = None
    target_date: CalendarDate | None = None
    progress: Progress | None = None
    tags: list[Tag] | None = None
    milestones: list[MilestoneReplace] | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _present_fields_not_null(cls, value: Any) -> Any:
        return _reject_null(value)

    @field_validator("tags")
    @classmethod
    def _unique_tags(cls, tags: list[str] | None) -> list[str] | None:
        if tags is None:
            return None
        return list(dict.fromkeys(tag for tag in tags if tag))


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


class NoteCreate(_Payload):
    content: str = Field(..., min_length=1, max_length=MAX_NOTE_LENGTH)


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


class GoalListQuery(BaseModel):
    """Query string of GET /goals. Empty values count as absent."""

    model_config = ConfigDict(str_strip_whitespace=True)

    status: GoalStatus | None = None
    category: GoalCategory | None = None
    priority: GoalPriority | None = None
    search: str | None = Field(None, description="Case-insensitive text match")
    page: int = Field(1, ge=1, description="1-based page number")
    limit: int | None = Field(None, ge=1, description="Page size")

    @field_validator("status", "category", "priority", "page", "limit", mode="before")
    @classmethod
    def _empty_is_absent(cls, value: Any, info: Any) -> Any:
        if value == "":
            return cls.model_fields[info.field_name].default
        return value

    def to_filter(self) -> GoalFilter:
        return GoalFilter(
            status=self.status,
            category=self.category,
            priority=self.priority,
            search=self.search,
        )


# ---------------------------------------------------------------------------
# Error conversion
# ---------------------------------------------------------------------------

_LOCATION_PREFIXES = frozenset({"body", "query", "path", "header"})


def field_errors(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic error dicts into ``{field, message}`` entries.

    ``("body", "milestones", 0, "title")`` becomes ``milestones[0].title``.
    """
    flattened: list[dict[str, str]] = []
    for error in errors:
        if error.get("type") == "json_invalid":
            flattened.append({"field": "body", "message": error.get("msg", "Invalid JSON")})
            continue
        loc = list(error.get("loc", ()))
        if len(loc) > 1 and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        field = ""
        for part in loc:
            if isinstance(part, int):
                field += f"[{part}]"
            else:
                field += f".{part}" if field else str(part)
        message = error.get("msg", "is invalid")
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        flattened.append({"field": field or "body", "message": message})
    return flattened


def parse_payload(model: type[ModelT], data: Any) -> ModelT:
    """Validate ``data`` into ``model``, raising GoalValidationError on failure."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise GoalValidationError(field_errors(exc.errors())) from None
