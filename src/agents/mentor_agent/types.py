"""
Mentor pipeline types: content references, resolved content variants, chat
messages, the gateway request body and the signed-in user session.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class ContentType(str, Enum):
    """Content kinds. Values are the wire names the gateway and the model use."""

    MODULES = "modules"
    NEWS = "news"
    TOOLS = "tools"
    PROMPTS = "prompts"
    LEARNING_PLANS = "learning_plans"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def parse(cls, value: Any) -> Optional["ContentType"]:
        """Normalize model output ("Module", "learning-plan", "prompts") to a member, or None."""
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace("-", "_").replace(" ", "_")
        return _ALIASES.get(key)


_LABELS = {
    ContentType.MODULES: "Module",
    ContentType.NEWS: "News",
    ContentType.TOOLS: "Tool",
    ContentType.PROMPTS: "Prompt",
    ContentType.LEARNING_PLANS: "Learning Plan",
}

_ALIASES = {
    "modules": ContentType.MODULES,
    "module": ContentType.MODULES,
    "news": ContentType.NEWS,
    "tools": ContentType.TOOLS,
    "tool": ContentType.TOOLS,
    "prompts": ContentType.PROMPTS,
    "prompt": ContentType.PROMPTS,
    "prompt_library": ContentType.PROMPTS,
    "learning_plans": ContentType.LEARNING_PLANS,
    "learning_plan": ContentType.LEARNING_PLANS,
}


class ContentRef(BaseModel):
    """A model-selected recommendation: which item of which type."""

    type: ContentType
    id: str


class ContentSummary(BaseModel):
    """Catalog projection sent to the model for selection."""

    id: str
    name: str
    description: str = ""
    type: ContentType

    @classmethod
    def from_item(cls, item: "ContentItem") -> "ContentSummary":
        return cls(
            id=item.id,
            name=item.display_name,
            description=item.display_description,
            type=ContentType(item.type),
        )


# ---- Resolved content: one variant per type, tagged by `type` ----


class _ContentBase(BaseModel):
    # Keep the rest of the record (urls, levels, timestamps) for rendering.
    model_config = ConfigDict(extra="allow")

    id: str
    description: Optional[str] = None

    @property
    def display_description(self) -> str:
        return self.description or ""

    @property
    def label(self) -> str:
        return ContentType(self.type).label  # type: ignore[attr-defined]


class ModuleContent(_ContentBase):
    type: Literal["modules"] = "modules"
    name: Optional[str] = None
    level: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or "Untitled module"


class NewsContent(_ContentBase):
    type: Literal["news"] = "news"
    title: str

    @property
    def display_name(self) -> str:
        return self.title


class ToolContent(_ContentBase):
    type: Literal["tools"] = "tools"
    name: str
    url: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name


class PromptContent(_ContentBase):
    type: Literal["prompts"] = "prompts"
    name: str
    purpose: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name

    @property
    def display_description(self) -> str:
        return self.description or self.purpose or ""


class LearningPlanContent(_ContentBase):
    type: Literal["learning_plans"] = "learning_plans"
    name: str
    learning_outcomes: Optional[List[str]] = None

    @property
    def display_name(self) -> str:
        return self.name


ContentItem = Annotated[
    Union[ModuleContent, NewsContent, ToolContent, PromptContent, LearningPlanContent],
    Field(discriminator="type"),
]

_content_item_adapter: TypeAdapter = TypeAdapter(ContentItem)


def content_item_from_record(content_type: ContentType, record: dict) -> ContentItem:
    """Build the typed variant for a repository row. Raises pydantic.ValidationError on a bad row."""
    return _content_item_adapter.validate_python({**record, "type": content_type.value})


# ---- Chat ----

Role = Literal["user", "assistant"]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class ChatMessage:
    id: str
    role: Role
    content: str
    timestamp: str
    recommended_content: Optional[List[ContentItem]] = None

    @classmethod
    def new(
        cls,
        role: Role,
        content: str = "",
        *,
        prefix: Optional[str] = None,
        recommended_content: Optional[List[ContentItem]] = None,
    ) -> "ChatMessage":
        """In-memory turn with a temporary id; the stored row gets its own id."""
        return cls(
            id=f"{prefix or role}-{uuid.uuid4().hex[:12]}",
            role=role,
            content=content,
            timestamp=_now_iso(),
            recommended_content=recommended_content,
        )


class StepType(str, Enum):
    RECOMMENDATION_CHECK = "recommendation_check"
    CONTENT_ANALYSIS = "content_analysis"
    FINAL_RESPONSE = "final_response"
    GENERAL_CHAT = "general_chat"


class GatewayRequest(BaseModel):
    """Fixed JSON body of a gateway call. Serialized with camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    user_email: str = Field(alias="userEmail")
    step_type: StepType = Field(alias="stepType")
    content_data: Optional[List[ContentSummary]] = Field(default=None, alias="contentData")
    selected_content: Optional[List[dict]] = Field(default=None, alias="selectedContent")

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class UserSession:
    """The signed-in user, passed explicitly into the pipeline entry points."""

    email: str
    user_id: Optional[str] = None
    preferences: dict = field(default_factory=dict, compare=False, hash=False)
