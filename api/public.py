"""
Unauthenticated links keyed by application id: the landlord decision view and
the tenant status page.
"""
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.serializers import application_to_response
from database import get_db
from schemas.application import LandlordDecision
from services.repository import AgentRepository, ApplicationRepository
from services.status_workflow import LANDLORD_DECISIONS, ApplicationStatus, parse_status, status_view
from utils.case import isoformat

router = APIRouter(prefix="/api/public", tags=["public"])


@router.get("/applications/{application_id}", response_model=dict)
async def landlord_view(application_id: str, db: AsyncSession = Depends(get_db)):
    app = await ApplicationRepository(db).get_record(application_id)
    agent = await AgentRepository(db).get_agent(app.agent_id)
    out = application_to_response(app)
    out["agent"] = {"name": agent.name, "businessName": agent.business_name, "logo": agent.logo}
    # Decisions stay open while the application is undecided
    out["awaitingDecision"] = app.status in (ApplicationStatus.PENDING.value, ApplicationStatus.FORWARDED.value)
    out["availableDecisions"] = sorted(s.value for s in LANDLORD_DECISIONS)
    return out


@router.post("/applications/{application_id}/decision", response_model=dict)
async def landlord_decision(application_id: str, body: LandlordDecision, db: AsyncSession = Depends(get_db)):
    target = parse_status(body.status)
    app = await ApplicationRepository(db).update_status(application_id, target, note=body.note)
    return application_to_response(app)


@router.get("/status/{application_id}", response_model=dict)
async def tenant_status(application_id: str, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    app = await ApplicationRepository(db).get_record(application_id)
    out = {
        "id": app.id,
        **status_view(app.status),
        "applicantName": (app.personal_info or {}).get("full_name", ""),
        "submittedAt": isoformat(app.created_at),
        "updatedAt": isoformat(app.updated_at),
        "documents": [d.get("name") for d in app.documents or []],
        "additionalInfoRequest": None,
    }
    if app.status == ApplicationStatus.INFO_REQUESTED.value:
        out["additionalInfoRequest"] = app.additional_info_request
    return out
