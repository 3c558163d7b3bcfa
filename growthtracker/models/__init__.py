# Make `from growthtracker.models import User, ChatMessage` work
from .orm import (  # noqa: F401
    User,
    DiaryEntry,
    Story,
    Mistake,
    Achievement,
    StudySession,
    Person,
    CalendarEvent,
    AiAssessment,
    ChatMessage,
)
