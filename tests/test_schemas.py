import pytest
from pydantic import ValidationError

from campaign_pipeline.schemas.campaigns import CampaignConfig, DynamicColumn, TemplateSection, TitlePattern
from campaign_pipeline.schemas.generation import GenerateContentRequest


def test_campaign_config_ignores_unknown_keys(campaign_config):
    config = CampaignConfig.model_validate({**campaign_config, "wizardStep": 4, "businessInfo": {"name": "x"}})

    assert config.titlePatterns[0].entityId == "entity-1"
    assert config.entity("entity-1").urlPrefix == "/"
    assert config.entity("missing") is None


def test_blank_variable_name_is_rejected():
    with pytest.raises(ValidationError):
        DynamicColumn(id="c1", variableName="   ", values=["a"])


def test_variable_name_is_stripped():
    assert DynamicColumn(id="c1", variableName=" city ").variableName == "city"


def test_section_type_must_be_known():
    with pytest.raises(ValidationError):
        TemplateSection(id="s1", type="carousel")


def test_section_content_accepts_strings_and_lists():
    section = TemplateSection(id="s1", type="faq", content={"title": "FAQ", "items": ["Q|A"]})

    assert section.content == {"title": "FAQ", "items": ["Q|A"]}


@pytest.mark.parametrize(
    ("page_id", "is_sample", "expected"),
    [("sample-123", False, True), ("page-1", True, True), ("page-1", False, False)],
)
def test_sample_mode(page_id, is_sample, expected):
    request = GenerateContentRequest(
        page_id=page_id, business_name="Acme", business_type="local", is_sample=is_sample
    )

    assert request.sample_mode is expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("Service Type", "service_type"), ("service-type", "servicetype"), ("  Zip  Code ", "zip_code")],
)
def test_variable_name_is_sanitized(raw, expected):
    assert DynamicColumn(id="c1", variableName=raw).variableName == expected


def test_variable_name_without_usable_characters_is_rejected():
    with pytest.raises(ValidationError):
        DynamicColumn(id="c1", variableName="!!!")


def test_title_pattern_tokens_use_sanitized_names():
    pattern = TitlePattern(id="p1", pattern="Best {{Service Type}} in {{city}} {{!!}}")

    assert pattern.pattern == "Best {{service_type}} in {{city}} {{!!}}"
