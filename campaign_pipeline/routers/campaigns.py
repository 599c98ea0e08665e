import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from temporalio.exceptions import WorkflowAlreadyStartedError

from campaign_pipeline.config import settings
from campaign_pipeline.db.deps import get_session
from campaign_pipeline.db.enums import CampaignPageStatusEnum
from campaign_pipeline.db.models import Campaign, CampaignPage
from campaign_pipeline.db.repositories import CampaignPagesRepository, CampaignsRepository
from campaign_pipeline.schemas.campaigns import (
    CampaignConfig,
    CampaignConfigUpdateRequest,
    CampaignCreateRequest,
    CampaignGenerationStartResponse,
    CampaignPageResponse,
    CampaignPageStatusUpdateRequest,
    CampaignResponse,
    FinalizeCampaignResponse,
    TemplateResolutionResponse,
)
from campaign_pipeline.schemas.generation import GenerateContentResponse, PageGenerateRequest
from campaign_pipeline.services.page_generation import (
    can_transition_status,
    finalize_campaign,
    generate_campaign_page,
)
from campaign_pipeline.services.template_resolver import resolve_template
from campaign_pipeline.temporal.client import get_temporal_client
from campaign_pipeline.temporal.workflows.campaign_page_generation import (
    CampaignPagesGenerationInput,
    CampaignPagesGenerationWorkflow,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


def _campaign_response(campaign: Campaign) -> CampaignResponse:
    return CampaignResponse(
        id=campaign.id,
        subaccountId=campaign.subaccount_id,
        name=campaign.name,
        description=campaign.description,
        status=campaign.status.value,
        businessName=campaign.business_name,
        businessType=campaign.business_type,
        websiteUrl=campaign.website_url,
        toneOfVoice=campaign.tone_of_voice,
        templateConfig=campaign.template_config or {},
        isFinalized=campaign.is_finalized,
        totalPages=campaign.total_pages,
        createdAt=campaign.created_at,
        updatedAt=campaign.updated_at,
    )


def _page_response(page: CampaignPage) -> CampaignPageResponse:
    return CampaignPageResponse(
        id=page.id,
        campaignId=page.campaign_id,
        title=page.title,
        slug=page.slug,
        dataValues=page.data_values or {},
        status=page.status.value,
        sectionsContent=page.sections_content or [],
        metaTitle=page.meta_title,
        metaDescription=page.meta_description,
        hasCheckpoint=bool(page.checkpoint_sections),
        updatedAt=page.updated_at,
    )


def _get_campaign_or_404(session: Session, campaign_id: str) -> Campaign:
    campaign = CampaignsRepository(session).get(campaign_id)
    if not campaign:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Campaign not found")
    return campaign


def _get_page_or_404(session: Session, campaign_id: str, page_id: str) -> CampaignPage:
    page = CampaignPagesRepository(session).get(page_id=page_id, campaign_id=campaign_id)
    if not page:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Page not found")
    return page


@router.post("", status_code=status.HTTP_201_CREATED, response_model=CampaignResponse)
def create_campaign(
    payload: CampaignCreateRequest,
    session: Session = Depends(get_session),
):
    repo = CampaignsRepository(session)
    campaign = repo.create(
        subaccount_id=payload.subaccountId,
        name=payload.name,
        description=payload.description,
        business_name=payload.businessName,
        business_type=payload.businessType,
        website_url=payload.websiteUrl,
        tone_of_voice=payload.toneOfVoice,
        template_config=payload.templateConfig.model_dump(mode="json", exclude_none=True),
    )
    return _campaign_response(campaign)


@router.get("", response_model=list[CampaignResponse])
def list_campaigns(
    subaccount_id: str = Query(alias="subaccountId"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    session: Session = Depends(get_session),
):
    campaigns = CampaignsRepository(session).list(subaccount_id, limit=limit, offset=offset)
    return [_campaign_response(campaign) for campaign in campaigns]


@router.get("/{campaign_id}", response_model=CampaignResponse)
def get_campaign(campaign_id: str, session: Session = Depends(get_session)):
    return _campaign_response(_get_campaign_or_404(session, campaign_id))


@router.put("/{campaign_id}/config", response_model=CampaignResponse)
def update_campaign_config(
    campaign_id: str,
    payload: CampaignConfigUpdateRequest,
    session: Session = Depends(get_session),
):
    campaign = _get_campaign_or_404(session, campaign_id)
    if campaign.is_finalized:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Campaign is finalized; its pages were already created from the current config.",
        )
    updated = CampaignsRepository(session).update(
        campaign_id,
        template_config=payload.templateConfig.model_dump(mode="json", exclude_none=True),
    )
    return _campaign_response(updated)


@router.post("/{campaign_id}/finalize", response_model=FinalizeCampaignResponse)
def finalize(campaign_id: str, session: Session = Depends(get_session)):
    campaign = _get_campaign_or_404(session, campaign_id)
    if campaign.is_finalized:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Campaign is already finalized.")
    result, pages = finalize_campaign(session, campaign)
    return FinalizeCampaignResponse(
        campaignId=campaign_id,
        created=len(pages),
        totalCombinations=result.total_combinations,
        truncatedCount=result.truncated_count,
        duplicateSlugs=result.duplicate_slugs,
    )


@router.get("/{campaign_id}/pages", response_model=list[CampaignPageResponse])
def list_pages(
    campaign_id: str,
    page_status: CampaignPageStatusEnum | None = Query(default=None, alias="status"),
    session: Session = Depends(get_session),
):
    _get_campaign_or_404(session, campaign_id)
    pages = CampaignPagesRepository(session).list(campaign_id=campaign_id, status=page_status)
    return [_page_response(page) for page in pages]


@router.get("/{campaign_id}/pages/{page_id}/template", response_model=TemplateResolutionResponse)
def get_page_template(campaign_id: str, page_id: str, session: Session = Depends(get_session)):
    campaign = _get_campaign_or_404(session, campaign_id)
    page = _get_page_or_404(session, campaign_id, page_id)
    config = CampaignConfig.model_validate(campaign.template_config or {})
    resolution = resolve_template(page.data_values, config, business_type=campaign.business_type)
    return TemplateResolutionResponse(
        source=resolution.source,
        entityId=resolution.entity_id,
        sections=resolution.sections,
        style=resolution.style,
        images=resolution.images,
    )


@router.post("/{campaign_id}/pages/{page_id}/generate", response_model=GenerateContentResponse)
async def generate_page(
    campaign_id: str,
    page_id: str,
    payload: PageGenerateRequest | None = None,
    session: Session = Depends(get_session),
):
    return await generate_campaign_page(
        session,
        campaign_id=campaign_id,
        page_id=page_id,
        options=payload or PageGenerateRequest(),
    )


@router.patch("/{campaign_id}/pages/{page_id}/status", response_model=CampaignPageResponse)
def update_page_status(
    campaign_id: str,
    page_id: str,
    payload: CampaignPageStatusUpdateRequest,
    session: Session = Depends(get_session),
):
    page = _get_page_or_404(session, campaign_id, page_id)
    target = CampaignPageStatusEnum(payload.status)
    if not can_transition_status(page.status, target):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot move page from {page.status.value} to {target.value}.",
        )
    updated = CampaignPagesRepository(session).update(page_id=page.id, status=target)
    return _page_response(updated)


@router.post(
    "/{campaign_id}/generate",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=CampaignGenerationStartResponse,
)
async def start_campaign_generation(
    campaign_id: str,
    regenerate_metadata: bool = False,
    session: Session = Depends(get_session),
):
    campaign = _get_campaign_or_404(session, campaign_id)
    if not campaign.is_finalized:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Finalize the campaign before generating its pages.",
        )
    try:
        temporal = await get_temporal_client()
        handle = await temporal.start_workflow(
            CampaignPagesGenerationWorkflow.run,
            CampaignPagesGenerationInput(
                campaign_id=campaign_id,
                regenerate_metadata=regenerate_metadata,
                concurrency=settings.CAMPAIGN_PAGE_GENERATION_CONCURRENCY,
            ),
            id=f"campaign-pages-generation-{campaign_id}",
            task_queue=settings.TEMPORAL_TASK_QUEUE,
        )
    except WorkflowAlreadyStartedError as exc:
        logger.info("Campaign page generation already running", extra={"campaign_id": campaign_id})
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Page generation is already running for this campaign.",
        ) from exc
    except Exception as exc:
        logger.exception("Failed to start campaign page generation", extra={"campaign_id": campaign_id})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to start campaign page generation workflow.",
        ) from exc
    return CampaignGenerationStartResponse(
        campaignId=campaign_id,
        workflowId=handle.id,
        runId=handle.first_execution_run_id,
    )
