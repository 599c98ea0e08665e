from __future__ import annotations

from typing import Any, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from campaign_pipeline.db.enums import CampaignPageStatusEnum
from campaign_pipeline.db.models import CampaignPage, utcnow


class CampaignPagesRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, *, campaign_id: str, status: Optional[CampaignPageStatusEnum] = None) -> list[CampaignPage]:
        stmt = select(CampaignPage).where(CampaignPage.campaign_id == campaign_id)
        if status is not None:
            stmt = stmt.where(CampaignPage.status == status)
        stmt = stmt.order_by(CampaignPage.ordering.asc(), CampaignPage.created_at.asc())
        return list(self.session.scalars(stmt).all())

    def get(self, *, page_id: str, campaign_id: Optional[str] = None) -> Optional[CampaignPage]:
        stmt = select(CampaignPage).where(CampaignPage.id == page_id)
        if campaign_id is not None:
            stmt = stmt.where(CampaignPage.campaign_id == campaign_id)
        return self.session.scalars(stmt).first()

    def create_many(
        self,
        *,
        campaign_id: str,
        subaccount_id: str,
        drafts: Iterable[dict[str, Any]],
    ) -> list[CampaignPage]:
        pages: list[CampaignPage] = []
        for ordering, draft in enumerate(drafts):
            page = CampaignPage(
                campaign_id=campaign_id,
                subaccount_id=subaccount_id,
                title=draft["title"],
                slug=draft["slug"],
                data_values=dict(draft["data_values"]),
                status=CampaignPageStatusEnum.draft,
                sections_content=[],
                ordering=ordering,
            )
            self.session.add(page)
            pages.append(page)
        self.session.commit()
        return pages

    def update(self, *, page_id: str, **fields: Any) -> Optional[CampaignPage]:
        page = self.get(page_id=page_id)
        if not page:
            return None
        for key, value in fields.items():
            setattr(page, key, value)
        page.updated_at = utcnow()
        self.session.commit()
        self.session.refresh(page)
        return page

    def save_checkpoint(self, *, page_id: str, sections: list[dict[str, Any]]) -> None:
        page = self.get(page_id=page_id)
        if not page:
            return
        # Assign a fresh list so the JSON column is flagged dirty.
        page.checkpoint_sections = list(sections)
        self.session.commit()

    def mark_generated(
        self,
        *,
        page_id: str,
        sections_content: list[dict[str, Any]],
        meta_title: str,
        meta_description: str,
    ) -> Optional[CampaignPage]:
        return self.update(
            page_id=page_id,
            meta_title=meta_title,
            meta_description=meta_description,
            sections_content=list(sections_content),
            checkpoint_sections=None,
            status=CampaignPageStatusEnum.generated,
        )
