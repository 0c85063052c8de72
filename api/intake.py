"""
Tenant-facing intake endpoints behind the public /apply/{slug} link.

The browser drives the wizard; these endpoints give it the form definition,
validate one step at a time with the same rules the wizard uses, turn stored
uploads into document records, and commit the finished draft.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from api.serializers import application_to_response, question_to_response
from database import get_db
from schemas.application import DocumentAttach, IntakeSubmit, StepValidationResponse
from services.custom_questions import question_to_dict
from services.documents import DocumentConstraints, collect_documents
from services.repository import AgentRepository, ApplicationRepository
from services.wizard import STEP_TITLES, ApplicationDraft, IntakeWizard, WizardStep, build_steps, step_errors
from utils.case import dict_keys_to_camel

router = APIRouter(prefix="/api/intake", tags=["intake"])


@router.get("/{slug}", response_model=dict)
async def get_intake_form(slug: str, db: AsyncSession = Depends(get_db)):
    agent = await AgentRepository(db).resolve_agent_for_intake(slug)
    questions = [question_to_dict(q) for q in agent.custom_questions]
    constraints = DocumentConstraints.from_settings()
    return {
        "agent": {
            "id": agent.id,
            "name": agent.name,
            "businessName": agent.business_name,
            "logo": agent.logo,
            "primaryColor": agent.primary_color,
            "secondaryColor": agent.secondary_color,
            "urlSlug": agent.url_slug,
            "isPlaceholder": bool(agent.is_placeholder),
        },
        "steps": [{"id": s.value, "title": STEP_TITLES[s]} for s in build_steps(questions)],
        "customQuestions": [question_to_response(q) for q in agent.custom_questions],
        "documentConstraints": {
            "allowedTypes": list(constraints.allowed_types),
            "maxSizeMb": constraints.max_size_mb,
            "multiple": constraints.multiple,
        },
    }


@router.post("/{slug}/steps/{step}/validate", response_model=StepValidationResponse)
async def validate_step(slug: str, step: str, body: IntakeSubmit, db: AsyncSession = Depends(get_db)):
    agent = await AgentRepository(db).get_agent_by_slug(slug)
    if not agent:
        raise HTTPException(status_code=404, detail="Agent not found")
    questions = [question_to_dict(q) for q in agent.custom_questions]
    try:
        wizard_step = WizardStep(step)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown step '{step}'") from None
    if wizard_step not in build_steps(questions):
        raise HTTPException(status_code=404, detail=f"Step '{step}' is not part of this form")
    draft = ApplicationDraft.from_record_data(body.model_dump(mode="json"))
    errors = step_errors(wizard_step, draft, questions)
    return StepValidationResponse(step=wizard_step.value, valid=not errors, errors=errors)


@router.post("/{slug}/documents", response_model=dict)
async def attach_documents(slug: str, body: DocumentAttach, db: AsyncSession = Depends(get_db)):
    """Turn stored uploads into document records; rejected files come back as messages."""
    agent = await AgentRepository(db).get_agent_by_slug(slug)
    if not agent:
        raise HTTPException(status_code=404, detail="Agent not found")
    batch = collect_documents([f.model_dump() for f in body.files], DocumentConstraints.from_settings())
    return {"documents": dict_keys_to_camel(batch.accepted), "errors": batch.errors}


@router.post("/{slug}/submit", response_model=dict, status_code=201)
async def submit_intake(slug: str, body: IntakeSubmit, db: AsyncSession = Depends(get_db)):
    agent = await AgentRepository(db).get_agent_by_slug(slug)
    if not agent:
        raise HTTPException(status_code=404, detail="Agent not found")
    draft = ApplicationDraft.from_record_data(body.model_dump(mode="json"))
    wizard = IntakeWizard(
        agent_id=agent.id,
        questions=agent.custom_questions,
        create_record=ApplicationRepository(db).create_record,
        draft=draft,
    )
    app = await wizard.submit()
    return application_to_response(app, include_links=True)
