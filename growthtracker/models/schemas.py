# growthtracker/models/schemas.py
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


def naive_utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is not None and v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


def as_utc(v: Any) -> Any:
    """Stored datetimes are naive UTC; label them so clients see the offset."""
    if isinstance(v, datetime) and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class _CamelModel(BaseModel):
    """JSON is camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    @field_serializer("*", mode="wrap")
    def utc_datetimes(self, value: Any, handler: SerializerFunctionWrapHandler) -> Any:
        return handler(as_utc(value))


# ---------- Auth / Users ----------
EMAIL_PATTERN = r"^[\w\.\+-]+@[\w\.-]+\.\w+$"


class UserPublic(_CamelModel):
    id: str
    username: str
    email: str
    first_name: str
    last_name: str


class SignUpIn(_CamelModel):
    username: str = Field(..., min_length=3, max_length=80)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)
    confirm_password: str
    first_name: str = Field(..., min_length=1, max_length=80)
    last_name: str = Field(..., min_length=1, max_length=80)


class SignInIn(_CamelModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)


class AuthOut(_CamelModel):
    user: UserPublic
    token: str


# ---------- Diary ----------
class DiaryEntryCreate(_CamelModel):
    title: str = Field(..., min_length=1)
    content: str
    mood: Optional[str] = Field(None, max_length=40)
    date: Optional[datetime] = None

    naive_dates = field_validator("date")(naive_utc)


class DiaryEntryUpdate(_CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = None
    mood: Optional[str] = Field(None, max_length=40)
    date: Optional[datetime] = None

    naive_dates = field_validator("date")(naive_utc)


class DiaryEntryOut(_CamelModel):
    id: str
    user_id: str
    title: str
    content: str
    mood: Optional[str] = None
    date: datetime
    created_at: datetime


# ---------- Stories ----------
class StoryCreate(_CamelModel):
    title: str = Field(..., min_length=1)
    content: str
    category: Optional[str] = Field(None, max_length=80)


class StoryUpdate(_CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = None
    category: Optional[str] = Field(None, max_length=80)


class StoryOut(_CamelModel):
    id: str
    user_id: str
    title: str
    content: str
    category: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ---------- Mistakes ----------
class MistakeCreate(_CamelModel):
    title: str = Field(..., min_length=1)
    description: str
    lesson: Optional[str] = None
    category: Optional[str] = Field(None, max_length=80)
    severity: Optional[str] = Field(None, max_length=40)
    date: Optional[datetime] = None

    naive_dates = field_validator("date")(naive_utc)


class MistakeUpdate(_CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    lesson: Optional[str] = None
    category: Optional[str] = Field(None, max_length=80)
    severity: Optional[str] = Field(None, max_length=40)
    date: Optional[datetime] = None

    naive_dates = field_validator("date")(naive_utc)


class MistakeOut(_CamelModel):
    id: str
    user_id: str
    title: str
    description: str
    lesson: Optional[str] = None
    category: Optional[str] = None
    severity: Optional[str] = None
    date: datetime
    created_at: datetime


# ---------- Achievements ----------
class AchievementCreate(_CamelModel):
    title: str = Field(..., min_length=1)
    description: str
    category: Optional[str] = Field(None, max_length=80)
    date: Optional[datetime] = None

    naive_dates = field_validator("date")(naive_utc)


class AchievementUpdate(_CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=80)
    date: Optional[datetime] = None

    naive_dates = field_validator("date")(naive_utc)


class AchievementOut(_CamelModel):
    id: str
    user_id: str
    title: str
    description: str
    category: Optional[str] = None
    date: datetime
    created_at: datetime


# ---------- Study sessions ----------
class StudySessionCreate(_CamelModel):
    subject: str = Field(..., min_length=1, max_length=160)
    topic: str = Field(..., min_length=1, max_length=160)
    duration: int = Field(..., gt=0)  # minutes
    notes: Optional[str] = None
    date: Optional[datetime] = None

    naive_dates = field_validator("date")(naive_utc)


class StudySessionUpdate(_CamelModel):
    subject: Optional[str] = Field(None, min_length=1, max_length=160)
    topic: Optional[str] = Field(None, min_length=1, max_length=160)
    duration: Optional[int] = Field(None, gt=0)
    notes: Optional[str] = None
    date: Optional[datetime] = None

    naive_dates = field_validator("date")(naive_utc)


class StudySessionOut(_CamelModel):
    id: str
    user_id: str
    subject: str
    topic: str
    duration: int
    notes: Optional[str] = None
    date: datetime
    created_at: datetime


# ---------- People ----------
Sentiment = Literal["positive", "negative"]


class PersonCreate(_CamelModel):
    name: str = Field(..., min_length=1, max_length=160)
    relationship: str = Field(..., min_length=1, max_length=80)
    sentiment: Sentiment
    description: Optional[str] = None
    notes: Optional[str] = None


class PersonUpdate(_CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=160)
    relationship: Optional[str] = Field(None, min_length=1, max_length=80)
    sentiment: Optional[Sentiment] = None
    description: Optional[str] = None
    notes: Optional[str] = None


class PersonOut(_CamelModel):
    id: str
    user_id: str
    name: str
    # ORM attribute is relationship_ (the bare name is taken by sqlalchemy.orm.relationship)
    relationship: str = Field(
        validation_alias=AliasChoices("relationship_", "relationship"),
        serialization_alias="relationship",
    )
    sentiment: str
    description: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ---------- Calendar ----------
class CalendarEventCreate(_CamelModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    category: Optional[str] = Field(None, max_length=80)

    naive_dates = field_validator("start_time", "end_time")(naive_utc)


class CalendarEventUpdate(_CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    category: Optional[str] = Field(None, max_length=80)

    naive_dates = field_validator("start_time", "end_time")(naive_utc)


class CalendarEventOut(_CamelModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    category: Optional[str] = None
    created_at: datetime


# ---------- AI assessments ----------
class AssessmentCreate(_CamelModel):
    # Validated by hand in the router so a bad shape is a 400, not a 422
    responses: Optional[Any] = None


class AssessmentOut(_CamelModel):
    id: str
    user_id: str
    responses: Dict[str, Any]
    growth_score: int
    recommendations: str
    created_at: datetime
