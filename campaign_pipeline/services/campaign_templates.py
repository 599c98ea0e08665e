from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from campaign_pipeline.schemas.campaigns import TemplateImages, TemplateSection, TemplateStyle


@dataclass(frozen=True)
class CampaignTemplate:
    template_id: str
    name: str
    description: str
    sections: tuple[TemplateSection, ...]


def default_style() -> TemplateStyle:
    return TemplateStyle()


def default_images() -> TemplateImages:
    return TemplateImages()


_LOCAL_BUSINESS_SECTIONS: list[dict[str, Any]] = [
    {
        "id": "hero",
        "type": "hero",
        "name": "Hero Section",
        "content": {
            "headline": "Best {{service}} Services in {{city}}",
            "subheadline": 'prompt("Write a compelling 2-sentence introduction about {{company}} offering '
            '{{service}} services in {{city}}. Focus on trust and quality.")',
            "cta_text": "Get Free Quote",
            "cta_url": "/contact",
        },
    },
    {
        "id": "features",
        "type": "features",
        "name": "Why Choose Us",
        "content": {
            "title": "Why Choose Our {{service}} Services?",
            "items": [
                "Licensed & Insured {{service}} Professionals",
                "24/7 Emergency {{service}} in {{city}}",
                "Free {{service}} Estimates & Consultations",
                "100% Satisfaction Guaranteed",
            ],
        },
    },
    {
        "id": "content-main",
        "type": "content",
        "name": "Main Content",
        "content": {
            "title": "Professional {{service}} in {{city}}",
            "body": 'prompt("Write a detailed 200-word paragraph about {{company}} providing {{service}} '
            "services in {{city}}. Include information about experience, expertise, and commitment to "
            'customer satisfaction.")',
        },
    },
    {
        "id": "cta",
        "type": "cta",
        "name": "Call to Action",
        "content": {
            "title": "Ready to Get Started?",
            "description": 'prompt("Write a short 1-sentence call-to-action encouraging visitors in {{city}} '
            'to contact {{company}} for {{service}} services.")',
            "button_text": "Contact Us Today",
            "button_url": "/contact",
        },
    },
]

_SAAS_SECTIONS: list[dict[str, Any]] = [
    {
        "id": "hero",
        "type": "hero",
        "name": "Hero Section",
        "content": {
            "headline": "{{product}} vs {{competitor}} - Complete Comparison",
            "subheadline": 'prompt("Write a 2-sentence comparison hook for {{product}} vs {{competitor}}. '
            'Be objective and highlight the key differentiator.")',
            "cta_text": "Start Free Trial",
            "cta_url": "/signup",
        },
    },
    {
        "id": "features",
        "type": "features",
        "name": "Feature Comparison",
        "content": {
            "title": "Key Features Comparison",
            "items": [
                "Feature-by-feature breakdown",
                "Pricing comparison",
                "User reviews and ratings",
                "Integration capabilities",
            ],
        },
    },
    {
        "id": "content-main",
        "type": "content",
        "name": "Detailed Analysis",
        "content": {
            "title": "In-Depth {{product}} vs {{competitor}} Analysis",
            "body": 'prompt("Write a comprehensive 250-word comparison between {{product}} and '
            "{{competitor}}. Cover pricing, features, user experience, and ideal use cases. "
            'Be balanced and objective.")',
        },
    },
]

_ECOMMERCE_SECTIONS: list[dict[str, Any]] = [
    {
        "id": "hero",
        "type": "hero",
        "name": "Hero Section",
        "content": {
            "headline": "Buy {{product}} Online - Fast Shipping to {{location}}",
            "subheadline": 'prompt("Write a compelling 2-sentence value proposition for buying {{product}} '
            'with delivery to {{location}}. Focus on convenience and quality.")',
            "cta_text": "Shop Now",
            "cta_url": "/products",
        },
    },
    {
        "id": "features",
        "type": "features",
        "name": "Why Shop With Us",
        "content": {
            "title": "Why Buy {{product}} From Us?",
            "items": [
                "Fast & Free Shipping",
                "30-Day Money Back Guarantee",
                "Authentic Products Only",
                "Expert Customer Support",
            ],
        },
    },
    {
        "id": "content-main",
        "type": "content",
        "name": "Product Description",
        "content": {
            "title": "Premium {{product}} Selection",
            "body": 'prompt("Write a 200-word product category description for {{product}} available for '
            'purchase with shipping to {{location}}. Highlight quality, selection, and value.")',
        },
    },
]


def _build(template_id: str, name: str, description: str, sections: list[dict[str, Any]]) -> CampaignTemplate:
    return CampaignTemplate(
        template_id=template_id,
        name=name,
        description=description,
        sections=tuple(TemplateSection.model_validate(section) for section in sections),
    )


LOCAL_BUSINESS_TEMPLATE = _build(
    "local-business",
    "Local Business",
    "Perfect for local service businesses targeting geographic areas",
    _LOCAL_BUSINESS_SECTIONS,
)
SAAS_TEMPLATE = _build(
    "saas",
    "SaaS Comparison",
    "For software comparison and integration landing pages",
    _SAAS_SECTIONS,
)
ECOMMERCE_TEMPLATE = _build(
    "ecommerce",
    "E-commerce Category",
    "For product category and location-based landing pages",
    _ECOMMERCE_SECTIONS,
)

_TEMPLATES_BY_ID: dict[str, CampaignTemplate] = {
    template.template_id: template for template in (LOCAL_BUSINESS_TEMPLATE, SAAS_TEMPLATE, ECOMMERCE_TEMPLATE)
}


def list_templates() -> list[CampaignTemplate]:
    return list(_TEMPLATES_BY_ID.values())


def get_template_by_id(template_id: str) -> Optional[CampaignTemplate]:
    return _TEMPLATES_BY_ID.get(template_id)


def get_template_for_business_type(business_type: Optional[str]) -> CampaignTemplate:
    if business_type == "saas":
        return SAAS_TEMPLATE
    if business_type == "ecommerce":
        return ECOMMERCE_TEMPLATE
    return LOCAL_BUSINESS_TEMPLATE
