from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from api.serializers import agent_to_response, apply_link, question_to_response
from database import get_db
from schemas.agent import AgentCreate, AgentUpdate, CustomQuestionCreate, CustomQuestionUpdate
from services.repository import AgentRepository, ApplicationRepository
from services.status_workflow import ApplicationStatus

router = APIRouter(prefix="/api/agents", tags=["agents"])

MSG_AGENT_NOT_FOUND = "Agent not found"


@router.post("", response_model=dict, status_code=201)
async def create_agent(body: AgentCreate, db: AsyncSession = Depends(get_db)):
    agent = await AgentRepository(db).create_agent(body.model_dump())
    return agent_to_response(agent)


@router.get("/by-slug/{slug}", response_model=dict)
async def get_agent_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    agent = await AgentRepository(db).get_agent_by_slug(slug)
    if not agent:
        raise HTTPException(status_code=404, detail=MSG_AGENT_NOT_FOUND)
    return agent_to_response(agent)


@router.get("/{agent_id}", response_model=dict)
async def get_agent(agent_id: str, db: AsyncSession = Depends(get_db)):
    agent = await AgentRepository(db).get_agent(agent_id)
    return agent_to_response(agent)


@router.patch("/{agent_id}", response_model=dict)
async def update_agent(agent_id: str, body: AgentUpdate, db: AsyncSession = Depends(get_db)):
    agent = await AgentRepository(db).update_agent(agent_id, body.model_dump(exclude_unset=True))
    return agent_to_response(agent)


@router.get("/{agent_id}/dashboard", response_model=dict)
async def get_dashboard(agent_id: str, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    agent = await AgentRepository(db).get_agent(agent_id)
    counts = await ApplicationRepository(db).count_by_status(agent.id)
    return {
        "agentId": agent.id,
        "totalApplications": sum(counts.values()),
        "pendingApplications": counts.get(ApplicationStatus.PENDING.value, 0),
        "approvedApplications": counts.get(ApplicationStatus.APPROVED.value, 0),
        "countsByStatus": {s.value: counts.get(s.value, 0) for s in ApplicationStatus},
        "applicationLink": apply_link(agent.url_slug),
    }


@router.post("/{agent_id}/questions", response_model=dict, status_code=201)
async def add_question(agent_id: str, body: CustomQuestionCreate, db: AsyncSession = Depends(get_db)):
    question = await AgentRepository(db).add_question(agent_id, body.model_dump())
    return question_to_response(question)


@router.patch("/{agent_id}/questions/{question_id}", response_model=dict)
async def update_question(
    agent_id: str, question_id: str, body: CustomQuestionUpdate, db: AsyncSession = Depends(get_db)
):
    question = await AgentRepository(db).update_question(agent_id, question_id, body.model_dump(exclude_unset=True))
    return question_to_response(question)


@router.delete("/{agent_id}/questions/{question_id}", status_code=204)
async def delete_question(agent_id: str, question_id: str, db: AsyncSession = Depends(get_db)):
    await AgentRepository(db).delete_question(agent_id, question_id)
    return None
