from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

import sqlalchemy as sa
from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from campaign_pipeline.db.base import Base
from campaign_pipeline.db.enums import CampaignPageStatusEnum, CampaignStatusEnum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


class Campaign(Base):
    __tablename__ = "campaigns"
    __table_args__ = (sa.Index("idx_campaigns_subaccount", "subaccount_id"),)

    id: Mapped[str] = mapped_column(String(length=36), primary_key=True, default=_new_id)
    subaccount_id: Mapped[str] = mapped_column(String(length=64), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[CampaignStatusEnum] = mapped_column(
        Enum(CampaignStatusEnum, name="campaign_status"),
        nullable=False,
        default=CampaignStatusEnum.draft,
    )
    business_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    business_type: Mapped[Optional[str]] = mapped_column(String(length=32), nullable=True)
    website_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tone_of_voice: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    template_config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    is_finalized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    total_pages: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class CampaignPage(Base):
    __tablename__ = "campaign_pages"
    __table_args__ = (
        sa.Index("idx_campaign_pages_campaign", "campaign_id"),
        sa.Index("idx_campaign_pages_slug", "slug"),
    )

    id: Mapped[str] = mapped_column(String(length=36), primary_key=True, default=_new_id)
    campaign_id: Mapped[str] = mapped_column(
        ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False
    )
    subaccount_id: Mapped[str] = mapped_column(String(length=64), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    # Duplicate slugs across title patterns are allowed; see EnumerationResult.duplicate_slugs.
    slug: Mapped[str] = mapped_column(Text, nullable=False)
    data_values: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[CampaignPageStatusEnum] = mapped_column(
        Enum(CampaignPageStatusEnum, name="campaign_page_status"),
        nullable=False,
        default=CampaignPageStatusEnum.draft,
    )
    sections_content: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    checkpoint_sections: Mapped[Optional[list[dict[str, Any]]]] = mapped_column(JSON, nullable=True)
    meta_title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meta_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ordering: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
