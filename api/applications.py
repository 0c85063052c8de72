from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.serializers import application_to_response
from database import get_db
from schemas.application import ApplicationCreate, ApplicationUpdate, StatusUpdate
from services.custom_questions import question_to_dict
from services.repository import AgentRepository, ApplicationRepository
from services.status_workflow import parse_status
from services.wizard import ApplicationDraft, validate_draft

router = APIRouter(prefix="/api/applications", tags=["applications"])


@router.get("", response_model=list[dict])
async def list_applications(
    agent_id: Optional[str] = Query(None, alias="agentId"),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Matches applicant name or email"),
    db: AsyncSession = Depends(get_db),
):
    if status and status != "all":
        status = parse_status(status).value
    else:
        status = None
    apps = await ApplicationRepository(db).list_records(agent_id=agent_id, status=status, search=search)
    return [application_to_response(a) for a in apps]


@router.get("/{application_id}", response_model=dict)
async def get_application(application_id: str, db: AsyncSession = Depends(get_db)):
    app = await ApplicationRepository(db).get_record(application_id)
    return application_to_response(app, include_links=True)


@router.post("", response_model=dict, status_code=201)
async def create_application(body: ApplicationCreate, db: AsyncSession = Depends(get_db)):
    agent = await AgentRepository(db).get_agent(body.agent_id)
    questions = [question_to_dict(q) for q in agent.custom_questions]
    draft = ApplicationDraft.from_record_data(body.model_dump(mode="json"))
    validate_draft(draft, questions)
    app = await ApplicationRepository(db).create_record(draft.to_record_data(agent.id, questions))
    return application_to_response(app, include_links=True)


@router.patch("/{application_id}", response_model=dict)
async def update_application(application_id: str, body: ApplicationUpdate, db: AsyncSession = Depends(get_db)):
    partial = body.model_dump(mode="json", exclude_unset=True)
    app = await ApplicationRepository(db).update_record(application_id, partial)
    return application_to_response(app, include_links=True)


@router.patch("/{application_id}/status", response_model=dict)
async def update_application_status(application_id: str, body: StatusUpdate, db: AsyncSession = Depends(get_db)):
    app = await ApplicationRepository(db).update_status(application_id, body.status, note=body.note)
    return application_to_response(app, include_links=True)


@router.delete("/{application_id}", status_code=204)
async def delete_application(application_id: str, db: AsyncSession = Depends(get_db)):
    await ApplicationRepository(db).delete_record(application_id)
    return None
