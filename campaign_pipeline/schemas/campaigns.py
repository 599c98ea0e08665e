from __future__ import annotations

from datetime import datetime
import re
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SectionType = Literal[
    "hero",
    "features",
    "content",
    "cta",
    "faq",
    "testimonials",
    "gallery",
    "footer",
    "pricing",
    "pros_cons",
    "benefits",
    "process",
    "image",
]
BusinessType = Literal["saas", "ecommerce", "local"]

_PATTERN_TOKEN = re.compile(r"\{\{([^{}]+)\}\}")


def sanitize_variable_name(name: str) -> str:
    """Lowercase, whitespace runs to ``_``, anything outside ``[a-z0-9_]`` dropped."""
    name = re.sub(r"\s+", "_", name.strip().lower())
    return re.sub(r"[^a-z0-9_]", "", name)


class TemplateSection(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    type: SectionType
    name: str = ""
    content: dict[str, str | list[str]] = Field(default_factory=dict)


class TemplateStyle(BaseModel):
    model_config = ConfigDict(extra="ignore")

    primaryColor: str = "#8B5CF6"
    backgroundColor: str = "#FFFFFF"
    typography: str = "Inter"
    buttonStyle: Literal["rounded", "square"] = "rounded"
    buttonFill: Literal["solid", "outline", "ghost"] = "solid"
    darkMode: bool = False


class LogoImage(BaseModel):
    url: str
    size: int = 48


class HeroImage(BaseModel):
    url: str
    position: str = "center"


class SectionImage(BaseModel):
    id: str
    url: str


class TemplateImages(BaseModel):
    model_config = ConfigDict(extra="ignore")

    logo: Optional[LogoImage] = None
    heroImage: Optional[HeroImage] = None
    sectionImages: list[SectionImage] = Field(default_factory=list)
    favicon: Optional[str] = None


class DynamicColumn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    variableName: str = Field(min_length=1)
    displayName: str = ""
    values: list[str] = Field(default_factory=list)

    @field_validator("variableName")
    @classmethod
    def sanitize_name(cls, value: str) -> str:
        sanitized = sanitize_variable_name(value)
        if not sanitized:
            raise ValueError("variableName must contain at least one letter, digit or underscore")
        return sanitized


class TitlePattern(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    pattern: str
    entityId: Optional[str] = None

    @field_validator("pattern")
    @classmethod
    def sanitize_tokens(cls, value: str) -> str:
        # Tokens use the same names as the sanitized columns, e.g. {{Service Type}} -> {{service_type}}.
        def _token(match: re.Match[str]) -> str:
            name = sanitize_variable_name(match.group(1))
            return f"{{{{{name}}}}}" if name else match.group(0)

        return _PATTERN_TOKEN.sub(_token, value)


class Entity(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    urlPrefix: str = "/"


class EntityTemplate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sections: list[TemplateSection] = Field(default_factory=list)
    style: Optional[TemplateStyle] = None
    images: Optional[TemplateImages] = None


class CampaignConfig(BaseModel):
    """Validated shape of a campaign's stored ``template_config``."""

    model_config = ConfigDict(extra="ignore")

    dynamicColumns: list[DynamicColumn] = Field(default_factory=list)
    titlePatterns: list[TitlePattern] = Field(default_factory=list)
    entities: list[Entity] = Field(default_factory=list)
    entityTemplates: dict[str, EntityTemplate] = Field(default_factory=dict)
    # Legacy single-template campaigns keep their sections at the top level.
    sections: list[TemplateSection] = Field(default_factory=list)
    style: Optional[TemplateStyle] = None
    images: Optional[TemplateImages] = None

    def entity(self, entity_id: Optional[str]) -> Optional[Entity]:
        if not entity_id:
            return None
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None


class CampaignCreateRequest(BaseModel):
    subaccountId: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: Optional[str] = None
    businessName: Optional[str] = None
    businessType: Optional[BusinessType] = None
    websiteUrl: Optional[str] = None
    toneOfVoice: Optional[str] = None
    templateConfig: CampaignConfig = Field(default_factory=CampaignConfig)


class CampaignConfigUpdateRequest(BaseModel):
    templateConfig: CampaignConfig


class CampaignResponse(BaseModel):
    id: str
    subaccountId: str
    name: str
    description: Optional[str] = None
    status: str
    businessName: Optional[str] = None
    businessType: Optional[str] = None
    websiteUrl: Optional[str] = None
    toneOfVoice: Optional[str] = None
    templateConfig: dict[str, Any]
    isFinalized: bool
    totalPages: int
    createdAt: datetime
    updatedAt: datetime


class FinalizeCampaignResponse(BaseModel):
    campaignId: str
    created: int
    totalCombinations: int
    truncatedCount: int
    duplicateSlugs: list[str] = Field(default_factory=list)


class CampaignPageResponse(BaseModel):
    id: str
    campaignId: str
    title: str
    slug: str
    dataValues: dict[str, str]
    status: str
    sectionsContent: list[dict[str, Any]] = Field(default_factory=list)
    metaTitle: Optional[str] = None
    metaDescription: Optional[str] = None
    hasCheckpoint: bool = False
    updatedAt: datetime


class CampaignPageStatusUpdateRequest(BaseModel):
    status: Literal["reviewed", "published"]


class TemplateResolutionResponse(BaseModel):
    source: Literal["entity", "legacy", "default"]
    entityId: Optional[str] = None
    sections: list[TemplateSection]
    style: TemplateStyle
    images: TemplateImages


class CampaignGenerationStartResponse(BaseModel):
    campaignId: str
    workflowId: str
    runId: Optional[str] = None
