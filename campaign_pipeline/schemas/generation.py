from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from campaign_pipeline.schemas.campaigns import TemplateSection


class GenerateContentRequest(BaseModel):
    page_id: str = Field(min_length=1)
    business_name: str
    business_type: str
    data_values: dict[str, str] = Field(default_factory=dict)
    template_sections: list[TemplateSection] = Field(default_factory=list)
    tone_of_voice: Optional[str] = None
    is_sample: bool = False
    regenerate_metadata: bool = False
    resume: bool = False

    @property
    def sample_mode(self) -> bool:
        return self.is_sample or self.page_id.startswith("sample-")


class PageGenerateRequest(BaseModel):
    regenerate_metadata: bool = False
    tone_of_voice: Optional[str] = None
    resume: bool = False


class GeneratedSection(BaseModel):
    id: str
    name: str
    type: str
    content: str
    generated: bool = True
    fields: dict[str, str] = Field(default_factory=dict)


class SeoMetadata(BaseModel):
    meta_title: str = ""
    meta_description: str = ""


class GenerateContentResponse(BaseModel):
    success: bool = True
    page_id: str
    meta_title: str
    meta_description: str
    sections: list[GeneratedSection]
