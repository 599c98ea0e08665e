from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from campaign_pipeline.db.deps import get_session
from campaign_pipeline.schemas.generation import GenerateContentRequest, GenerateContentResponse
from campaign_pipeline.services.campaign_templates import (
    CampaignTemplate,
    get_template_for_business_type,
    list_templates,
)
from campaign_pipeline.services.page_generation import PageGenerationPipeline

router = APIRouter(tags=["generation"])


def _template_payload(template: CampaignTemplate) -> dict[str, Any]:
    return {
        "id": template.template_id,
        "name": template.name,
        "description": template.description,
        "sections": [section.model_dump() for section in template.sections],
    }


@router.post("/generate-campaign-content", response_model=GenerateContentResponse)
async def generate_campaign_content(
    payload: GenerateContentRequest,
    session: Session = Depends(get_session),
):
    return await PageGenerationPipeline(session).generate(payload)


@router.get("/templates")
def get_templates() -> list[dict[str, Any]]:
    return [_template_payload(template) for template in list_templates()]


@router.get("/templates/{business_type}")
def get_template(business_type: str) -> dict[str, Any]:
    if not business_type.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="business_type is required")
    return _template_payload(get_template_for_business_type(business_type))
