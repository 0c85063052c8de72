"""Row -> camelCase dict mapping shared by the routers."""
from __future__ import annotations

from typing import Any

from config import settings
from models import AgentProfile, CustomQuestion, TenantApplication
from services.custom_questions import question_to_dict
from services.status_workflow import status_view
from utils.case import dict_keys_to_camel, isoformat


def application_links(application_id: str) -> dict[str, str]:
    base = settings.public_base_url.rstrip("/")
    return {
        "landlordView": f"{base}/public/{application_id}",
        "tenantStatus": f"{base}/status/{application_id}",
    }


def apply_link(slug: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}/apply/{slug}"


def application_to_response(app: TenantApplication, include_links: bool = False) -> dict[str, Any]:
    """Serialize application to dict with camelCase for frontend."""
    out = {
        "id": app.id,
        "agentId": app.agent_id,
        "status": app.status,
        "statusLabel": status_view(app.status)["label"],
        "personalInfo": dict_keys_to_camel(app.personal_info or {}),
        "employmentInfo": dict_keys_to_camel(app.employment_info or {}),
        "rentalHistory": dict_keys_to_camel(app.rental_history or {}),
        "references": dict_keys_to_camel(app.tenant_references or []),
        "documents": dict_keys_to_camel(app.documents or []),
        "customAnswers": dict_keys_to_camel(app.custom_answers or []),
        "questionSnapshot": dict_keys_to_camel(app.question_snapshot or []),
        "additionalInfoRequest": app.additional_info_request,
        "createdAt": isoformat(app.created_at),
        "updatedAt": isoformat(app.updated_at),
    }
    if include_links:
        out["links"] = application_links(app.id)
    return out


def question_to_response(q: CustomQuestion) -> dict[str, Any]:
    return dict_keys_to_camel(question_to_dict(q))


def agent_to_response(agent: AgentProfile) -> dict[str, Any]:
    return {
        "id": agent.id,
        "name": agent.name,
        "businessName": agent.business_name,
        "email": agent.email,
        "phone": agent.phone,
        "logo": agent.logo,
        "primaryColor": agent.primary_color,
        "secondaryColor": agent.secondary_color,
        "urlSlug": agent.url_slug,
        "isPlaceholder": bool(agent.is_placeholder),
        "customQuestions": [question_to_response(q) for q in agent.custom_questions],
        "applicationLink": apply_link(agent.url_slug),
        "createdAt": isoformat(agent.created_at),
        "updatedAt": isoformat(agent.updated_at),
    }
