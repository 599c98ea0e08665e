from campaign_pipeline.schemas.campaigns import (
    CampaignConfig,
    DynamicColumn,
    Entity,
    EntityTemplate,
    TemplateImages,
    TemplateSection,
    TemplateStyle,
    TitlePattern,
)
from campaign_pipeline.schemas.generation import (
    GenerateContentRequest,
    GenerateContentResponse,
    GeneratedSection,
    SeoMetadata,
)
