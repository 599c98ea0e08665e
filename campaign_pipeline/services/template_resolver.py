from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Optional, Union

from campaign_pipeline.schemas.campaigns import (
    CampaignConfig,
    EntityTemplate,
    TemplateImages,
    TemplateSection,
    TemplateStyle,
)
from campaign_pipeline.services.campaign_templates import (
    default_images,
    default_style,
    get_template_for_business_type,
)
from campaign_pipeline.services.page_enumerator import ENTITY_ID_KEY


@dataclass(frozen=True)
class EntityResolution:
    entity_id: str
    template: EntityTemplate
    source: Literal["entity"] = field(default="entity", init=False)

    @property
    def sections(self) -> list[TemplateSection]:
        return list(self.template.sections)

    @property
    def style(self) -> TemplateStyle:
        return self.template.style or default_style()

    @property
    def images(self) -> TemplateImages:
        return self.template.images or default_images()


@dataclass(frozen=True)
class LegacyResolution:
    config: CampaignConfig
    source: Literal["legacy"] = field(default="legacy", init=False)
    entity_id: None = field(default=None, init=False)

    @property
    def sections(self) -> list[TemplateSection]:
        return list(self.config.sections)

    @property
    def style(self) -> TemplateStyle:
        return self.config.style or default_style()

    @property
    def images(self) -> TemplateImages:
        return self.config.images or default_images()


@dataclass(frozen=True)
class DefaultResolution:
    business_type: str
    source: Literal["default"] = field(default="default", init=False)
    entity_id: None = field(default=None, init=False)

    @property
    def sections(self) -> list[TemplateSection]:
        template = get_template_for_business_type(self.business_type)
        return [section.model_copy(deep=True) for section in template.sections]

    @property
    def style(self) -> TemplateStyle:
        return default_style()

    @property
    def images(self) -> TemplateImages:
        return default_images()


TemplateResolution = Union[EntityResolution, LegacyResolution, DefaultResolution]


def resolve_template(
    data_values: Optional[Mapping[str, Any]],
    config: CampaignConfig,
    *,
    business_type: Optional[str] = None,
) -> TemplateResolution:
    """Pick the template for a page.

    1. The page's own entity template, when it has sections.
    2. The first configured entity template.
    3. The legacy top-level sections.
    4. The built-in template for the campaign's business type.
    """
    entity_templates = config.entityTemplates

    entity_id = (data_values or {}).get(ENTITY_ID_KEY)
    if entity_id:
        template = entity_templates.get(str(entity_id))
        if template is not None and template.sections:
            return EntityResolution(entity_id=str(entity_id), template=template)

    if entity_templates:
        first_entity_id = next(iter(entity_templates))
        return EntityResolution(entity_id=first_entity_id, template=entity_templates[first_entity_id])

    if config.sections:
        return LegacyResolution(config=config)

    return DefaultResolution(business_type=business_type or "local")
