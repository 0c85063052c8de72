"""
Custom question authoring rules.

An agent's extra form fields. Question text is required; choice questions
(radio, checkbox, select) need at least two options. Options are edited
client-side on a QuestionDraft and only persisted by the surrounding add/update.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from services.errors import QuestionValidationError

QUESTION_TYPES = ("text", "radio", "checkbox", "select")
CHOICE_TYPES = frozenset({"radio", "checkbox", "select"})
MIN_CHOICE_OPTIONS = 2


def new_question_id() -> str:
    return f"cq-{uuid.uuid4().hex[:12]}"


def question_errors(question_text: Optional[str], type: str, options: Optional[list[str]]) -> dict[str, str]:
    """Return field -> message for every rule the question breaks (empty when valid)."""
    errors: dict[str, str] = {}
    if not (question_text or "").strip():
        errors["questionText"] = "Please enter a question."
    if type not in QUESTION_TYPES:
        errors["type"] = f"must be one of: {', '.join(QUESTION_TYPES)}"
    elif type in CHOICE_TYPES and len(options or []) < MIN_CHOICE_OPTIONS:
        errors["options"] = f"{type} questions need at least {MIN_CHOICE_OPTIONS} options."
    return errors


def validate_question(question_text: Optional[str], type: str, options: Optional[list[str]]) -> None:
    errors = question_errors(question_text, type, options)
    if errors:
        raise QuestionValidationError("Invalid custom question", errors)


@dataclass
class QuestionDraft:
    """A question being authored; option edits stay local until committed."""

    question_text: str = ""
    required: bool = False
    type: str = "text"
    options: list[str] = field(default_factory=list)
    id: Optional[str] = None

    def add_option(self, option: str) -> bool:
        option = (option or "").strip()
        if not option:
            return False
        self.options.append(option)
        return True

    def remove_option(self, index: int) -> None:
        if 0 <= index < len(self.options):
            del self.options[index]

    def errors(self) -> dict[str, str]:
        return question_errors(self.question_text, self.type, self.options)

    def validate(self) -> None:
        validate_question(self.question_text, self.type, self.options)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "question_text": self.question_text.strip(),
            "required": self.required,
            "type": self.type,
            # Options only mean something for choice questions
            "options": list(self.options) if self.type in CHOICE_TYPES else [],
        }

    @classmethod
    def from_question(cls, question: Any) -> "QuestionDraft":
        return cls(
            id=question.id,
            question_text=question.question_text,
            required=bool(question.required),
            type=question.type,
            options=list(question.options or []),
        )


def question_to_dict(question: Any) -> dict[str, Any]:
    """Snake_case dict of a CustomQuestion row (or anything shaped like one)."""
    return {
        "id": question.id,
        "question_text": question.question_text,
        "required": bool(question.required),
        "type": question.type,
        "options": list(question.options or []),
    }
