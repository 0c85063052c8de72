from typing import ClassVar, Literal, Optional

from pydantic import Field

from schemas.application import CamelModel

QuestionType = Literal["text", "radio", "checkbox", "select"]


class CustomQuestionCreate(CamelModel):
    """Authoring rules (text present, >=2 options for choice types) are checked by the service."""
    question_text: str = ""
    required: bool = False
    type: QuestionType = "text"
    options: list[str] = Field(default_factory=list)


class CustomQuestionUpdate(CamelModel):
    non_nullable_fields: ClassVar[tuple[str, ...]] = ("question_text", "required", "type", "options")

    question_text: Optional[str] = None
    required: Optional[bool] = None
    type: Optional[QuestionType] = None
    options: Optional[list[str]] = None


class AgentCreate(CamelModel):
    """Signup / profile setup. A supplied slug is normalized; a missing one is derived from the name."""
    name: str = Field(..., min_length=1)
    business_name: str = ""
    email: str = ""
    phone: str = ""
    logo: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    url_slug: Optional[str] = None
    custom_questions: Optional[list[CustomQuestionCreate]] = Field(None, description="Optional initial questions")


class AgentUpdate(CamelModel):
    """Partial profile update. A null or empty urlSlug regenerates it from the name."""

    non_nullable_fields: ClassVar[tuple[str, ...]] = ("name", "business_name", "email", "phone")

    name: Optional[str] = Field(None, min_length=1)
    business_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    logo: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    url_slug: Optional[str] = None
