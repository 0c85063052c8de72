"""
Tenant intake wizard.

A linear sequence of steps that accumulates an ApplicationDraft. The wizard only
moves forward when the active step validates; going back is always allowed.
Advancing from the last step submits the draft through a `create_record`
collaborator, with the status forced to pending.

Steps: personal, employment, rental history, references, documents, and a
custom-questions step that exists only when the agent had at least one question
when the wizard was started.

Usage:
    >>> wizard = IntakeWizard(agent_id="agent-1", questions=[], create_record=repo.create_record)
    >>> wizard.draft.full_name = "Ada Tenant"
    >>> await wizard.advance()   # raises DraftValidationError while the step is incomplete
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from services.custom_questions import CHOICE_TYPES, question_to_dict
from services.documents import DocumentConstraints, check_document_type
from services.errors import DraftValidationError, RecordNotFoundError, WizardStateError
from services.status_workflow import INITIAL_STATUS

logger = logging.getLogger(__name__)

Answer = Union[str, list[str]]
CreateRecord = Callable[[dict[str, Any]], Awaitable[Any]]


class WizardStep(str, Enum):
    PERSONAL = "personal"
    EMPLOYMENT = "employment"
    RENTAL_HISTORY = "rental-history"
    REFERENCES = "references"
    DOCUMENTS = "documents"
    CUSTOM_QUESTIONS = "custom-questions"


STEP_TITLES: dict[WizardStep, str] = {
    WizardStep.PERSONAL: "Personal Information",
    WizardStep.EMPLOYMENT: "Employment Information",
    WizardStep.RENTAL_HISTORY: "Rental History",
    WizardStep.REFERENCES: "References",
    WizardStep.DOCUMENTS: "Documents",
    WizardStep.CUSTOM_QUESTIONS: "Additional Questions",
}

BASE_STEPS = (
    WizardStep.PERSONAL,
    WizardStep.EMPLOYMENT,
    WizardStep.RENTAL_HISTORY,
    WizardStep.REFERENCES,
    WizardStep.DOCUMENTS,
)

REQUIRED_MESSAGE = "This field is required."
CHOICE_MESSAGE = "Please choose one of the listed options."


def empty_reference() -> dict[str, str]:
    return {"name": "", "relationship": "", "phone": ""}


def split_legacy_answer(answer: Answer) -> list[str]:
    """Checkbox answers from older records arrive comma-joined."""
    if isinstance(answer, list):
        return [a for a in answer if a]
    return [part.strip() for part in (answer or "").split(",") if part.strip()]


def normalize_answer(question: dict[str, Any], answer: Optional[Answer]) -> Answer:
    """Checkbox answers are lists; every other type is a single string."""
    if question.get("type") == "checkbox":
        return split_legacy_answer(answer or [])
    if isinstance(answer, list):
        return ", ".join(answer)
    return answer or ""


def _blank(value: Any) -> bool:
    return not (value or "").strip()


def _answered(answer: Optional[Answer]) -> bool:
    if isinstance(answer, list):
        return any(not _blank(a) for a in answer)
    return not _blank(answer)


@dataclass
class ApplicationDraft:
    """Everything the tenant has typed so far; fields may be incomplete."""

    # Personal info
    full_name: str = ""
    email: str = ""
    phone: str = ""
    date_of_birth: str = ""
    # Employment info
    employer: str = ""
    position: str = ""
    income: str = ""
    employment_length: str = ""
    employer_contact: str = ""
    # Rental history
    current_address: str = ""
    current_landlord: str = ""
    current_landlord_phone: str = ""
    length_of_stay: str = ""
    reason_for_leaving: str = ""

    references: list[dict[str, str]] = field(default_factory=lambda: [empty_reference()])
    documents: list[dict[str, Any]] = field(default_factory=list)
    custom_answers: dict[str, Answer] = field(default_factory=dict)

    @classmethod
    def for_questions(cls, questions: Iterable[dict[str, Any]]) -> "ApplicationDraft":
        draft = cls()
        for q in questions:
            draft.custom_answers[q["id"]] = [] if q.get("type") == "checkbox" else ""
        return draft

    @classmethod
    def from_record_data(cls, data: dict[str, Any]) -> "ApplicationDraft":
        """Rebuild a draft from a snake_case create payload (server-side re-validation)."""
        personal = data.get("personal_info") or {}
        employment = data.get("employment_info") or {}
        rental = data.get("rental_history") or {}
        return cls(
            full_name=personal.get("full_name") or "",
            email=personal.get("email") or "",
            phone=personal.get("phone") or "",
            date_of_birth=personal.get("date_of_birth") or "",
            employer=employment.get("employer") or "",
            position=employment.get("position") or "",
            income=employment.get("income") or "",
            employment_length=employment.get("employment_length") or "",
            employer_contact=employment.get("employer_contact") or "",
            current_address=rental.get("current_address") or "",
            current_landlord=rental.get("current_landlord") or "",
            current_landlord_phone=rental.get("current_landlord_phone") or "",
            length_of_stay=rental.get("length_of_stay") or "",
            reason_for_leaving=rental.get("reason_for_leaving") or "",
            references=[dict(r) for r in data.get("references") or []],
            documents=list(data.get("documents") or []),
            custom_answers={
                a["question_id"]: a.get("answer") for a in data.get("custom_answers") or []
            },
        )

    def to_record_data(self, agent_id: str, questions: list[dict[str, Any]]) -> dict[str, Any]:
        """Snake_case payload for the create_record collaborator. Status is always pending."""
        return {
            "agent_id": agent_id,
            "status": INITIAL_STATUS.value,
            "personal_info": {
                "full_name": self.full_name,
                "email": self.email,
                "phone": self.phone,
                "date_of_birth": self.date_of_birth or None,
            },
            "employment_info": {
                "employer": self.employer,
                "position": self.position,
                "income": self.income,
                "employment_length": self.employment_length,
                "employer_contact": self.employer_contact or None,
            },
            "rental_history": {
                "current_address": self.current_address,
                "current_landlord": self.current_landlord or None,
                "current_landlord_phone": self.current_landlord_phone or None,
                "length_of_stay": self.length_of_stay,
                "reason_for_leaving": self.reason_for_leaving or None,
            },
            "references": [dict(r) for r in self.references],
            "documents": list(self.documents),
            "custom_answers": [
                {"question_id": q["id"], "answer": normalize_answer(q, self.custom_answers.get(q["id"]))}
                for q in questions
            ],
            "question_snapshot": [dict(q) for q in questions],
        }


# --- Per-step validators: pure functions of (draft, questions) -> {field: message} ---


def _required(draft: ApplicationDraft, fields: dict[str, str]) -> dict[str, str]:
    return {path: REQUIRED_MESSAGE for attr, path in fields.items() if _blank(getattr(draft, attr))}


def personal_errors(draft: ApplicationDraft, questions: list[dict[str, Any]]) -> dict[str, str]:
    return _required(draft, {
        "full_name": "personalInfo.fullName",
        "email": "personalInfo.email",
        "phone": "personalInfo.phone",
    })


def employment_errors(draft: ApplicationDraft, questions: list[dict[str, Any]]) -> dict[str, str]:
    return _required(draft, {
        "employer": "employmentInfo.employer",
        "position": "employmentInfo.position",
        "income": "employmentInfo.income",
    })


def rental_history_errors(draft: ApplicationDraft, questions: list[dict[str, Any]]) -> dict[str, str]:
    return _required(draft, {
        "current_address": "rentalHistory.currentAddress",
        "length_of_stay": "rentalHistory.lengthOfStay",
    })


def references_errors(draft: ApplicationDraft, questions: list[dict[str, Any]]) -> dict[str, str]:
    # Relationship is optional; one complete name + phone pair is enough
    if any(not _blank(r.get("name")) and not _blank(r.get("phone")) for r in draft.references):
        return {}
    return {"references": "At least one reference needs a name and phone number."}


def documents_errors(draft: ApplicationDraft, questions: list[dict[str, Any]]) -> dict[str, str]:
    # Documents are optional; the ones attached must still be of an allowed type
    constraints = DocumentConstraints.from_settings()
    errors = {}
    for i, doc in enumerate(draft.documents):
        error = check_document_type(doc.get("type") or "", constraints)
        if error:
            errors[f"documents.{i}"] = error
    return errors


def _choice_error(question: dict[str, Any], answer: Optional[Answer]) -> Optional[str]:
    options = question.get("options") or []
    if question.get("type") == "checkbox":
        chosen = split_legacy_answer(answer or [])
    else:
        chosen = [normalize_answer(question, answer)] if _answered(answer) else []
    if any(c not in options for c in chosen):
        return CHOICE_MESSAGE
    return None


def custom_questions_errors(draft: ApplicationDraft, questions: list[dict[str, Any]]) -> dict[str, str]:
    errors = {}
    for q in questions:
        answer = draft.custom_answers.get(q["id"])
        key = f"customAnswers.{q['id']}"
        if q.get("required") and not _answered(answer):
            errors[key] = REQUIRED_MESSAGE
        elif q.get("type") in CHOICE_TYPES:
            error = _choice_error(q, answer)
            if error:
                errors[key] = error
    return errors


STEP_VALIDATORS: dict[WizardStep, Callable[[ApplicationDraft, list[dict[str, Any]]], dict[str, str]]] = {
    WizardStep.PERSONAL: personal_errors,
    WizardStep.EMPLOYMENT: employment_errors,
    WizardStep.RENTAL_HISTORY: rental_history_errors,
    WizardStep.REFERENCES: references_errors,
    WizardStep.DOCUMENTS: documents_errors,
    WizardStep.CUSTOM_QUESTIONS: custom_questions_errors,
}


def build_steps(questions: list[dict[str, Any]]) -> list[WizardStep]:
    steps = list(BASE_STEPS)
    if questions:
        steps.append(WizardStep.CUSTOM_QUESTIONS)
    return steps


def step_errors(step: WizardStep | str, draft: ApplicationDraft, questions: list[dict[str, Any]]) -> dict[str, str]:
    return STEP_VALIDATORS[WizardStep(step)](draft, questions)


def is_step_valid(step: WizardStep | str, draft: ApplicationDraft, questions: list[dict[str, Any]]) -> bool:
    return not step_errors(step, draft, questions)


def validate_draft(draft: ApplicationDraft, questions: list[dict[str, Any]]) -> None:
    """Run every step's validator in order; raise on the first incomplete step."""
    for step in build_steps(questions):
        errors = step_errors(step, draft, questions)
        if errors:
            raise DraftValidationError(step.value, errors)


def _as_question_dicts(questions: Iterable[Any]) -> list[dict[str, Any]]:
    return [dict(q) if isinstance(q, dict) else question_to_dict(q) for q in questions]


class IntakeWizard:
    """Step state machine for one tenant filling out one agent's form.

    Attributes:
        agent_id: Owner of the application being drafted
        questions: The agent's questions, frozen at wizard start
        steps: Step list decided once from `questions`
        index: Position of the active step
        draft: The accumulated answers
        record: Whatever create_record returned, once complete
        last_error: The collaborator error from the most recent failed submit
    """

    def __init__(
        self,
        agent_id: str,
        questions: Iterable[Any],
        create_record: CreateRecord,
        draft: Optional[ApplicationDraft] = None,
    ):
        self.agent_id = agent_id
        self.questions = _as_question_dicts(questions)
        self.steps = build_steps(self.questions)
        self.index = 0
        self.draft = draft or ApplicationDraft.for_questions(self.questions)
        self._create_record = create_record
        self.is_submitting = False
        self.is_complete = False
        self.record: Any = None
        self.last_error: Optional[Exception] = None

    @property
    def current_step(self) -> WizardStep:
        return self.steps[self.index]

    @property
    def is_last_step(self) -> bool:
        return self.index == len(self.steps) - 1

    def current_errors(self) -> dict[str, str]:
        return step_errors(self.current_step, self.draft, self.questions)

    def is_current_step_valid(self) -> bool:
        return not self.current_errors()

    def _ensure_editable(self) -> None:
        if self.is_complete:
            raise WizardStateError("Application already submitted")
        if self.is_submitting:
            raise WizardStateError("Submission already in progress")

    async def advance(self) -> WizardStep:
        """Move to the next step, or submit from the last one. Returns the active step."""
        self._ensure_editable()
        errors = self.current_errors()
        if errors:
            raise DraftValidationError(self.current_step.value, errors)
        if self.is_last_step:
            await self.submit()
        else:
            self.index += 1
        return self.current_step

    def retreat(self) -> WizardStep:
        self._ensure_editable()
        if self.index > 0:
            self.index -= 1
        return self.current_step

    async def submit(self) -> Any:
        """Commit the draft. On failure stay on the last step and re-raise."""
        self._ensure_editable()
        validate_draft(self.draft, self.questions)
        data = self.draft.to_record_data(self.agent_id, self.questions)
        self.is_submitting = True
        self.last_error = None
        try:
            record = await self._create_record(data)
        except Exception as e:
            logger.error("Submitting application for agent %s failed: %s", self.agent_id, e)
            self.last_error = e
            raise
        finally:
            self.is_submitting = False
        self.record = record
        self.is_complete = True
        logger.info("Application submitted for agent %s", self.agent_id)
        return record

    # --- References ---

    def add_reference(self) -> None:
        self.draft.references.append(empty_reference())

    def remove_reference(self, index: int) -> None:
        # The list never drops below one entry
        if len(self.draft.references) <= 1:
            return
        if 0 <= index < len(self.draft.references):
            del self.draft.references[index]

    def update_reference(self, index: int, **values: str) -> None:
        self.draft.references[index].update(values)

    # --- Documents ---

    def add_documents(self, documents: list[dict[str, Any]], multiple: bool = True) -> None:
        if multiple:
            self.draft.documents = [*self.draft.documents, *documents]
        else:
            self.draft.documents = list(documents)

    # --- Custom answers ---

    def _question(self, question_id: str) -> dict[str, Any]:
        for q in self.questions:
            if q["id"] == question_id:
                return q
        raise RecordNotFoundError("Question", question_id)

    def set_answer(self, question_id: str, answer: Answer) -> None:
        question = self._question(question_id)
        self.draft.custom_answers[question_id] = normalize_answer(question, answer)

    def toggle_option(self, question_id: str, option: str) -> list[str]:
        """Select or deselect one checkbox option; selections keep the question's option order."""
        question = self._question(question_id)
        selected = split_legacy_answer(self.draft.custom_answers.get(question_id) or [])
        if option in selected:
            selected.remove(option)
        else:
            selected.append(option)
        order = {opt: i for i, opt in enumerate(question.get("options") or [])}
        selected.sort(key=lambda o: order.get(o, len(order)))
        self.draft.custom_answers[question_id] = selected
        return selected
