from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campaign_pipeline.config import settings
from campaign_pipeline.db.enums import CampaignPageStatusEnum
from campaign_pipeline.db.models import Campaign, CampaignPage
from campaign_pipeline.db.repositories import CampaignPagesRepository, CampaignsRepository
from campaign_pipeline.errors import (
    CampaignNotFoundError,
    PageNotFoundError,
    PersistenceFailedError,
    PipelineError,
)
from campaign_pipeline.schemas.campaigns import CampaignConfig
from campaign_pipeline.schemas.generation import (
    GenerateContentRequest,
    GenerateContentResponse,
    GeneratedSection,
    PageGenerateRequest,
    SeoMetadata,
)
from campaign_pipeline.services.content_generator import ContentGenerator, GenerationContext
from campaign_pipeline.services.page_enumerator import (
    ENTITY_ID_KEY,
    PATTERN_ID_KEY,
    EnumerationResult,
    enumerate_pages,
)
from campaign_pipeline.services.template_parser import (
    ParsedSection,
    join_section_content,
    parse_sections,
    render_field,
)
from campaign_pipeline.services.template_resolver import resolve_template

logger = logging.getLogger(__name__)

IMAGE_FAILED_PLACEHOLDER = "[Image generation failed]"

_ALLOWED_STATUS_TRANSITIONS: dict[CampaignPageStatusEnum, frozenset[CampaignPageStatusEnum]] = {
    CampaignPageStatusEnum.generated: frozenset(
        {CampaignPageStatusEnum.reviewed, CampaignPageStatusEnum.published}
    ),
    CampaignPageStatusEnum.reviewed: frozenset({CampaignPageStatusEnum.published}),
}


@dataclass
class SectionResult:
    index: int
    section: Optional[GeneratedSection] = None
    error: Optional[BaseException] = None
    skipped: bool = False
    reused: bool = False

    @property
    def ok(self) -> bool:
        return self.section is not None


def enrich_data_values(business_name: str, data_values: Mapping[str, str]) -> dict[str, str]:
    """Expose the business name as ``{{company}}`` and ``{{business}}`` unless the page overrides them."""
    return {"company": business_name, "business": business_name, **data_values}


def sample_seo_metadata(business_name: str) -> SeoMetadata:
    return SeoMetadata(
        meta_title=f"Sample - {business_name}",
        meta_description=f"Sample page for {business_name}",
    )


def can_transition_status(current: CampaignPageStatusEnum, target: CampaignPageStatusEnum) -> bool:
    return target in _ALLOWED_STATUS_TRANSITIONS.get(current, frozenset())


class PageGenerationPipeline:
    """
    Fills one page's template and persists the result.

    Sections run as independent tasks under a concurrency bound. Fields inside a section
    render in declared order. Each finished section is checkpointed on the page so a later
    failure keeps the progress made so far; the page's content, metadata and status only
    change once every section succeeded.
    """

    def __init__(
        self,
        session: Optional[Session],
        generator: Optional[ContentGenerator] = None,
        *,
        concurrency: Optional[int] = None,
    ) -> None:
        self.session = session
        self._generator = generator
        self.concurrency = max(1, concurrency or settings.GENERATION_SECTION_CONCURRENCY)

    @property
    def generator(self) -> ContentGenerator:
        if self._generator is None:
            self._generator = ContentGenerator()
        return self._generator

    @property
    def pages(self) -> CampaignPagesRepository:
        if self.session is None:
            raise RuntimeError("A database session is required to generate stored pages.")
        return CampaignPagesRepository(self.session)

    async def generate(self, request: GenerateContentRequest) -> GenerateContentResponse:
        # Parse up front so a broken template fails before any upstream call.
        parsed_sections = parse_sections(request.template_sections)
        values = enrich_data_values(request.business_name, request.data_values)
        context = GenerationContext(
            business_name=request.business_name,
            business_type=request.business_type,
            tone_of_voice=request.tone_of_voice or settings.DEFAULT_TONE_OF_VOICE,
            data_values=values,
        )
        sample_mode = request.sample_mode

        logger.info(
            "Generating campaign page content",
            extra={
                "page_id": request.page_id,
                "sample_mode": sample_mode,
                "section_count": len(parsed_sections),
            },
        )

        page: Optional[CampaignPage] = None
        if not sample_mode:
            page = self.pages.get(page_id=request.page_id)
            if page is None:
                raise PageNotFoundError()

        reusable: dict[str, dict[str, Any]] = {}
        if page is not None and request.resume:
            reusable = {
                str(item.get("id")): item
                for item in (page.checkpoint_sections or [])
                if isinstance(item, dict) and item.get("id")
            }

        sections = await self._generate_sections(
            parsed_sections,
            values=values,
            context=context,
            page_id=None if page is None else page.id,
            sample_mode=sample_mode,
            reusable=reusable,
        )

        if page is None:
            metadata = sample_seo_metadata(request.business_name)
        elif request.regenerate_metadata or not (page.meta_title and page.meta_description):
            metadata = await self.generator.generate_seo_metadata(page.title, context)
        else:
            metadata = SeoMetadata(meta_title=page.meta_title, meta_description=page.meta_description)

        if page is not None:
            self._persist(page.id, sections, metadata)
            logger.info("Campaign page generated", extra={"page_id": page.id, "section_count": len(sections)})

        return GenerateContentResponse(
            page_id=request.page_id,
            meta_title=metadata.meta_title,
            meta_description=metadata.meta_description,
            sections=sections,
        )

    async def _generate_sections(
        self,
        parsed_sections: list[ParsedSection],
        *,
        values: Mapping[str, str],
        context: GenerationContext,
        page_id: Optional[str],
        sample_mode: bool,
        reusable: Mapping[str, Mapping[str, Any]],
    ) -> list[GeneratedSection]:
        semaphore = asyncio.Semaphore(self.concurrency)
        failed = asyncio.Event()
        finished: dict[int, GeneratedSection] = {}

        async def _run(index: int, parsed: ParsedSection) -> SectionResult:
            async with semaphore:
                if failed.is_set():
                    return SectionResult(index=index, skipped=True)

                checkpointed = reusable.get(parsed.id)
                if checkpointed is not None:
                    section = GeneratedSection.model_validate(checkpointed)
                    finished[index] = section
                    logger.info(
                        "Reusing checkpointed section",
                        extra={"page_id": page_id, "section_id": parsed.id},
                    )
                    return SectionResult(index=index, section=section, reused=True)

                try:
                    section = await self._render_section(
                        parsed, values=values, context=context, sample_mode=sample_mode
                    )
                    finished[index] = section
                    if page_id is not None:
                        self._checkpoint(page_id, finished)
                except Exception as exc:  # re-raised below once in-flight sections settle
                    failed.set()
                    logger.error(
                        "Section generation failed",
                        extra={"page_id": page_id, "section_id": parsed.id, "error": str(exc)},
                    )
                    return SectionResult(index=index, error=exc)
                return SectionResult(index=index, section=section)

        results = await asyncio.gather(
            *(_run(index, parsed) for index, parsed in enumerate(parsed_sections))
        )
        results = sorted(results, key=lambda result: result.index)

        for result in results:
            if result.error is not None:
                raise result.error

        return [result.section for result in results if result.section is not None]

    async def _render_section(
        self,
        parsed: ParsedSection,
        *,
        values: Mapping[str, str],
        context: GenerationContext,
        sample_mode: bool,
    ) -> GeneratedSection:
        logger.info("Processing section", extra={"section_id": parsed.id, "section_type": parsed.type})

        async def _generate_text(prompt: str) -> str:
            logger.info(
                "Generating AI content",
                extra={"section_id": parsed.id, "prompt": prompt[:100]},
            )
            return await self.generator.generate_text(prompt, context)

        async def _generate_image(prompt: str) -> str:
            if sample_mode:
                return f"[Sample Image: {prompt[:60]}...]"
            try:
                return await self.generator.generate_image(prompt)
            except PipelineError:
                logger.exception("Image generation failed", extra={"section_id": parsed.id})
                return IMAGE_FAILED_PLACEHOLDER

        rendered: dict[str, str] = {}
        for field in parsed.fields:
            rendered[field.key] = await render_field(
                field,
                values,
                generate_text=_generate_text,
                generate_image=_generate_image,
            )

        return GeneratedSection(
            id=parsed.id,
            name=parsed.name,
            type=parsed.type,
            content=join_section_content(list(rendered.values())),
            fields=rendered,
        )

    def _checkpoint(self, page_id: str, finished: Mapping[int, GeneratedSection]) -> None:
        sections = [finished[index].model_dump() for index in sorted(finished)]
        try:
            self.pages.save_checkpoint(page_id=page_id, sections=sections)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Failed to checkpoint generated sections", extra={"page_id": page_id})
            raise PersistenceFailedError() from exc

    def _persist(self, page_id: str, sections: list[GeneratedSection], metadata: SeoMetadata) -> None:
        try:
            page = self.pages.mark_generated(
                page_id=page_id,
                sections_content=[section.model_dump() for section in sections],
                meta_title=metadata.meta_title,
                meta_description=metadata.meta_description,
            )
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Error updating page", extra={"page_id": page_id})
            raise PersistenceFailedError() from exc
        if page is None:
            raise PageNotFoundError()


def build_generation_request(
    campaign: Campaign,
    page: CampaignPage,
    *,
    tone_of_voice: Optional[str] = None,
    regenerate_metadata: bool = False,
    resume: bool = False,
) -> GenerateContentRequest:
    """Assemble the pipeline input for a stored page from its campaign's config."""
    config = CampaignConfig.model_validate(campaign.template_config or {})
    resolution = resolve_template(page.data_values, config, business_type=campaign.business_type)
    data_values = {
        key: str(value)
        for key, value in (page.data_values or {}).items()
        if key not in (PATTERN_ID_KEY, ENTITY_ID_KEY)
    }
    return GenerateContentRequest(
        page_id=page.id,
        business_name=campaign.business_name or campaign.name,
        business_type=campaign.business_type or "local",
        data_values=data_values,
        template_sections=resolution.sections,
        tone_of_voice=tone_of_voice or campaign.tone_of_voice,
        regenerate_metadata=regenerate_metadata,
        resume=resume,
    )


async def generate_campaign_page(
    session: Session,
    *,
    campaign_id: str,
    page_id: str,
    options: Optional[PageGenerateRequest] = None,
    generator: Optional[ContentGenerator] = None,
) -> GenerateContentResponse:
    options = options or PageGenerateRequest()
    campaign = CampaignsRepository(session).get(campaign_id)
    if campaign is None:
        raise CampaignNotFoundError()
    page = CampaignPagesRepository(session).get(page_id=page_id, campaign_id=campaign_id)
    if page is None:
        raise PageNotFoundError()

    request = build_generation_request(
        campaign,
        page,
        tone_of_voice=options.tone_of_voice,
        regenerate_metadata=options.regenerate_metadata,
        resume=options.resume,
    )
    return await PageGenerationPipeline(session, generator).generate(request)


def finalize_campaign(session: Session, campaign: Campaign) -> tuple[EnumerationResult, list[CampaignPage]]:
    """Materialize the campaign's pages from its title patterns and mark it finalized."""
    config = CampaignConfig.model_validate(campaign.template_config or {})
    result = enumerate_pages(config)
    pages = CampaignPagesRepository(session).create_many(
        campaign_id=campaign.id,
        subaccount_id=campaign.subaccount_id,
        drafts=(draft.as_record() for draft in result.pages),
    )
    CampaignsRepository(session).update(campaign.id, is_finalized=True, total_pages=len(pages))
    logger.info(
        "Campaign finalized",
        extra={
            "campaign_id": campaign.id,
            "pages_created": len(pages),
            "total_combinations": result.total_combinations,
            "truncated_count": result.truncated_count,
            "duplicate_slugs": len(result.duplicate_slugs),
        },
    )
    return result, pages
