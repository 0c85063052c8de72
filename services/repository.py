"""
Persistence for agent profiles, their custom questions, and tenant applications.

Every mutation targets one record or one profile and writes through the
request's AsyncSession; the router's session dependency commits or rolls back.
Concurrent edits are not reconciled: last write wins.
"""
from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from config import settings
from models import AgentProfile, CustomQuestion, TenantApplication
from services.custom_questions import QuestionDraft, new_question_id
from services.errors import DraftValidationError, RecordNotFoundError, SlugInUseError
from services.status_workflow import (
    INITIAL_STATUS,
    ApplicationStatus,
    apply_status_change,
    next_timestamp,
)
from services.wizard import ApplicationDraft, WizardStep, step_errors

logger = logging.getLogger(__name__)

DEFAULT_PRIMARY_COLOR = "#1a365d"

# API field name -> column name where they differ
_APPLICATION_COLUMNS = {
    "personal_info": "personal_info",
    "employment_info": "employment_info",
    "rental_history": "rental_history",
    "references": "tenant_references",
    "documents": "documents",
    "custom_answers": "custom_answers",
    "additional_info_request": "additional_info_request",
}

_MERGED_SECTIONS = frozenset({"personal_info", "employment_info", "rental_history"})

# Updated section -> the intake step whose rules it must still satisfy
_SECTION_STEPS = {
    "personal_info": WizardStep.PERSONAL,
    "employment_info": WizardStep.EMPLOYMENT,
    "rental_history": WizardStep.RENTAL_HISTORY,
    "references": WizardStep.REFERENCES,
    "documents": WizardStep.DOCUMENTS,
    "custom_answers": WizardStep.CUSTOM_QUESTIONS,
}

_AGENT_FIELDS = (
    "name",
    "business_name",
    "email",
    "phone",
    "logo",
    "primary_color",
    "secondary_color",
)


def slugify(name: str) -> str:
    """'Jane Smith' -> 'jane-smith'. Falls back to a random slug when nothing usable is left."""
    slug = re.sub(r"\s+", "-", (name or "").strip().lower())
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug or f"agent-{uuid.uuid4().hex[:8]}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validate_sections(record: TenantApplication, values: dict[str, Any]) -> None:
    """Run the intake step rules over every section an update touches, using the stored question snapshot."""
    merged = {
        "personal_info": record.personal_info,
        "employment_info": record.employment_info,
        "rental_history": record.rental_history,
        "references": record.tenant_references,
        "documents": record.documents,
        "custom_answers": record.custom_answers,
        **values,
    }
    draft = ApplicationDraft.from_record_data(merged)
    questions = record.question_snapshot or []
    for key, step in _SECTION_STEPS.items():
        if key not in values:
            continue
        if step is WizardStep.CUSTOM_QUESTIONS and not questions:
            continue
        errors = step_errors(step, draft, questions)
        if errors:
            raise DraftValidationError(step.value, errors)


class ApplicationRepository:
    """create / get / list / update / delete for tenant applications."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_record(self, data: dict[str, Any]) -> TenantApplication:
        """
        Store a submitted application. Status is always pending, whatever `data` says.

        Args:
            data: snake_case payload with agent_id and the nested sections

        Raises:
            RecordNotFoundError: the owning agent does not exist
        """
        agent_id = data["agent_id"]
        agent = await self.session.get(AgentProfile, agent_id)
        if agent is None:
            raise RecordNotFoundError("Agent", agent_id)
        if data.get("status") not in (None, INITIAL_STATUS.value):
            logger.info("Ignoring status %r on new application; forcing pending", data.get("status"))

        now = _utcnow()
        record = TenantApplication(
            id=f"app-{uuid.uuid4().hex[:12]}",
            agent_id=agent_id,
            status=INITIAL_STATUS.value,
            personal_info=data["personal_info"],
            employment_info=data["employment_info"],
            rental_history=data["rental_history"],
            tenant_references=data.get("references") or [],
            documents=data.get("documents") or [],
            custom_answers=data.get("custom_answers") or [],
            question_snapshot=data.get("question_snapshot") or [],
            additional_info_request=None,
            created_at=now,
            updated_at=now,
        )
        self.session.add(record)
        await self.session.flush()
        logger.info("Created application %s for agent %s", record.id, agent_id)
        return record

    async def get_record(self, application_id: str) -> TenantApplication:
        result = await self.session.execute(
            select(TenantApplication).where(TenantApplication.id == application_id)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise RecordNotFoundError("Application", application_id)
        return record

    async def list_records(
        self,
        agent_id: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[TenantApplication]:
        """Newest activity first. `search` matches applicant name or email, case-insensitive."""
        query = select(TenantApplication).order_by(TenantApplication.updated_at.desc())
        if agent_id:
            query = query.where(TenantApplication.agent_id == agent_id)
        if status:
            query = query.where(TenantApplication.status == status)
        result = await self.session.execute(query)
        records = list(result.scalars().all())
        if search:
            needle = search.strip().lower()
            records = [
                r for r in records
                if needle in (r.personal_info or {}).get("full_name", "").lower()
                or needle in (r.personal_info or {}).get("email", "").lower()
            ]
        return records

    async def update_record(self, application_id: str, partial: dict[str, Any]) -> TenantApplication:
        """
        Merge only the keys present in `partial` into the stored record and refresh
        updated_at. A status key goes through the status workflow.
        """
        record = await self.get_record(application_id)
        values = {}
        for key, column in _APPLICATION_COLUMNS.items():
            if key not in partial:
                continue
            if key in _MERGED_SECTIONS:
                # A section update carries only the fields the caller sent
                values[key] = {**(getattr(record, column) or {}), **(partial[key] or {})}
            else:
                values[key] = partial[key]
        _validate_sections(record, values)

        if partial.get("status") is not None:
            apply_status_change(record, partial["status"])
        for key, value in values.items():
            setattr(record, _APPLICATION_COLUMNS[key], value)
        record.updated_at = next_timestamp(record.updated_at)
        await self.session.flush()
        logger.info("Updated application %s fields=%s", application_id, sorted(partial))
        return record

    async def update_status(
        self,
        application_id: str,
        status: ApplicationStatus | str,
        note: Optional[str] = None,
    ) -> TenantApplication:
        record = await self.get_record(application_id)
        apply_status_change(record, status, note=note)
        await self.session.flush()
        return record

    async def delete_record(self, application_id: str) -> None:
        record = await self.get_record(application_id)
        await self.session.delete(record)
        await self.session.flush()
        logger.info("Deleted application %s", application_id)

    async def count_by_status(self, agent_id: str) -> dict[str, int]:
        result = await self.session.execute(
            select(TenantApplication.status, func.count(TenantApplication.id))
            .where(TenantApplication.agent_id == agent_id)
            .group_by(TenantApplication.status)
        )
        return {status: count for status, count in result.all()}


class AgentRepository:
    """Agent profiles (indexed by url slug) and their custom questions."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _with_questions(self):
        return select(AgentProfile).options(selectinload(AgentProfile.custom_questions))

    async def get_agent(self, agent_id: str) -> AgentProfile:
        result = await self.session.execute(self._with_questions().where(AgentProfile.id == agent_id))
        agent = result.scalar_one_or_none()
        if agent is None:
            raise RecordNotFoundError("Agent", agent_id)
        return agent

    async def get_agent_by_slug(self, slug: str) -> Optional[AgentProfile]:
        result = await self.session.execute(self._with_questions().where(AgentProfile.url_slug == slug))
        return result.scalar_one_or_none()

    async def _ensure_slug_free(self, slug: str, agent_id: Optional[str] = None) -> None:
        result = await self.session.execute(select(AgentProfile.id).where(AgentProfile.url_slug == slug))
        owner = result.scalar_one_or_none()
        if owner is not None and owner != agent_id:
            raise SlugInUseError(slug)

    async def create_agent(self, data: dict[str, Any], is_placeholder: bool = False) -> AgentProfile:
        # Supplied slugs follow the same rules as derived ones
        slug = slugify(data.get("url_slug") or data["name"])
        await self._ensure_slug_free(slug)

        questions = []
        for position, q in enumerate(data.get("custom_questions") or []):
            draft = QuestionDraft(
                question_text=q.get("question_text") or "",
                required=bool(q.get("required")),
                type=q.get("type") or "text",
                options=list(q.get("options") or []),
            )
            draft.validate()
            questions.append(_question_row(draft, position))

        now = _utcnow()
        agent = AgentProfile(
            id=f"agent-{uuid.uuid4().hex[:12]}",
            name=data["name"],
            business_name=data.get("business_name") or "",
            email=data.get("email") or "",
            phone=data.get("phone") or "",
            logo=data.get("logo"),
            primary_color=data.get("primary_color") or DEFAULT_PRIMARY_COLOR,
            secondary_color=data.get("secondary_color"),
            url_slug=slug,
            is_placeholder=is_placeholder,
            created_at=now,
            updated_at=now,
            custom_questions=questions,
        )
        self.session.add(agent)
        await self.session.flush()
        logger.info("Created agent %s with slug %s", agent.id, slug)
        return agent

    async def update_agent(self, agent_id: str, partial: dict[str, Any]) -> AgentProfile:
        agent = await self.get_agent(agent_id)
        for key in _AGENT_FIELDS:
            if key in partial:
                setattr(agent, key, partial[key])
        if "url_slug" in partial:
            # An explicitly cleared slug is regenerated from the (possibly new) name
            slug = slugify(partial["url_slug"] or agent.name)
            await self._ensure_slug_free(slug, agent_id=agent.id)
            agent.url_slug = slug
        agent.is_placeholder = False
        agent.updated_at = next_timestamp(agent.updated_at)
        await self.session.flush()
        return agent

    async def resolve_agent_for_intake(self, slug: str) -> AgentProfile:
        """
        Agent behind a public application link. An unknown slug gets a persisted
        placeholder profile when settings allow it, otherwise RecordNotFoundError.
        """
        agent = await self.get_agent_by_slug(slug)
        if agent is not None:
            return agent
        # A malformed slug never names a profile, so it gets no placeholder either
        if not settings.placeholder_agent_on_unknown_slug or slugify(slug) != slug:
            raise RecordNotFoundError("Agent", slug)
        logger.warning("No agent for slug %r; creating placeholder profile", slug)
        agent = await self.create_agent(
            {
                "name": "Default Agent",
                "business_name": "Default Real Estate",
                "email": "contact@defaultrealestate.com",
                "phone": "(555) 555-5555",
                "url_slug": slug,
            },
            is_placeholder=True,
        )
        return agent

    # --- Custom questions ---

    async def add_question(self, agent_id: str, data: dict[str, Any]) -> CustomQuestion:
        agent = await self.get_agent(agent_id)
        draft = QuestionDraft(
            question_text=data.get("question_text") or "",
            required=bool(data.get("required")),
            type=data.get("type") or "text",
            options=list(data.get("options") or []),
        )
        draft.validate()
        position = max((q.position for q in agent.custom_questions), default=-1) + 1
        question = _question_row(draft, position)
        agent.custom_questions.append(question)
        await self.session.flush()
        logger.info("Agent %s added question %s", agent_id, question.id)
        return question

    async def _get_question(self, agent_id: str, question_id: str) -> CustomQuestion:
        result = await self.session.execute(
            select(CustomQuestion).where(
                CustomQuestion.id == question_id, CustomQuestion.agent_id == agent_id
            )
        )
        question = result.scalar_one_or_none()
        if question is None:
            raise RecordNotFoundError("Question", question_id)
        return question

    async def update_question(self, agent_id: str, question_id: str, partial: dict[str, Any]) -> CustomQuestion:
        question = await self._get_question(agent_id, question_id)
        draft = QuestionDraft.from_question(question)
        for key in ("question_text", "required", "type", "options"):
            if partial.get(key) is not None:
                setattr(draft, key, partial[key])
        draft.validate()
        values = draft.to_dict()
        question.question_text = values["question_text"]
        question.required = values["required"]
        question.type = values["type"]
        question.options = values["options"]
        await self.session.flush()
        return question

    async def delete_question(self, agent_id: str, question_id: str) -> None:
        # Existing applications keep their snapshot of the question
        question = await self._get_question(agent_id, question_id)
        await self.session.delete(question)
        await self.session.flush()
        logger.info("Agent %s deleted question %s", agent_id, question_id)


def _question_row(draft: QuestionDraft, position: int) -> CustomQuestion:
    values = draft.to_dict()
    return CustomQuestion(
        id=values["id"] or new_question_id(),
        position=position,
        question_text=values["question_text"],
        required=values["required"],
        type=values["type"],
        options=values["options"],
    )
