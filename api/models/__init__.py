"""
API data models. Single import surface for DB entities.

Chat history (api.models.models):
- MentorMessage (table ai_mentor)

Content (api.models.models):
- Module, News, Tool, PromptLibraryEntry, LearningPlan
"""

from api.models.models import (
    MentorMessage,
    Module,
    News,
    Tool,
    PromptLibraryEntry,
    LearningPlan,
)

__all__ = [
    "MentorMessage",
    "Module",
    "News",
    "Tool",
    "PromptLibraryEntry",
    "LearningPlan",
]
