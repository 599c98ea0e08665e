from campaign_pipeline.schemas.campaigns import CampaignConfig
from campaign_pipeline.services.campaign_templates import (
    ECOMMERCE_TEMPLATE,
    LOCAL_BUSINESS_TEMPLATE,
    SAAS_TEMPLATE,
    get_template_by_id,
    get_template_for_business_type,
    list_templates,
)
from campaign_pipeline.services.template_resolver import (
    DefaultResolution,
    EntityResolution,
    LegacyResolution,
    resolve_template,
)


def _section(section_id: str) -> dict:
    return {"id": section_id, "type": "content", "name": section_id, "content": {"body": section_id}}


def _config(**fields) -> CampaignConfig:
    return CampaignConfig.model_validate(fields)


def test_page_entity_template_is_used_when_present():
    config = _config(
        entityTemplates={
            "e1": {"sections": [_section("one")]},
            "e2": {"sections": [_section("two")], "style": {"primaryColor": "#000000"}},
        }
    )

    resolution = resolve_template({"entityId": "e2"}, config)

    assert isinstance(resolution, EntityResolution)
    assert resolution.source == "entity"
    assert resolution.entity_id == "e2"
    assert [section.id for section in resolution.sections] == ["two"]
    assert resolution.style.primaryColor == "#000000"


def test_unknown_entity_falls_back_to_first_entity_template():
    config = _config(entityTemplates={"e1": {"sections": [_section("one")]}})

    resolution = resolve_template({"entityId": "e2"}, config)

    assert resolution.source == "entity"
    assert resolution.entity_id == "e1"
    assert [section.id for section in resolution.sections] == ["one"]


def test_entity_template_with_no_sections_falls_back_to_first_entry():
    config = _config(
        entityTemplates={
            "e1": {"sections": [_section("one")]},
            "e2": {"sections": []},
        }
    )

    resolution = resolve_template({"entityId": "e2"}, config)

    assert resolution.entity_id == "e1"


def test_legacy_sections_used_without_entity_templates():
    config = _config(sections=[_section("legacy")])

    resolution = resolve_template({"entityId": "e1"}, config)

    assert isinstance(resolution, LegacyResolution)
    assert resolution.source == "legacy"
    assert resolution.entity_id is None
    assert [section.id for section in resolution.sections] == ["legacy"]


def test_default_template_follows_business_type():
    config = _config()

    saas = resolve_template({}, config, business_type="saas")
    ecommerce = resolve_template({}, config, business_type="ecommerce")
    local = resolve_template(None, config, business_type="plumbing")

    assert isinstance(saas, DefaultResolution)
    assert saas.source == "default"
    assert [s.id for s in saas.sections] == [s.id for s in SAAS_TEMPLATE.sections]
    assert [s.id for s in ecommerce.sections] == [s.id for s in ECOMMERCE_TEMPLATE.sections]
    assert [s.id for s in local.sections] == [s.id for s in LOCAL_BUSINESS_TEMPLATE.sections]


def test_style_and_images_fall_back_to_global_defaults():
    config = _config(entityTemplates={"e1": {"sections": [_section("one")]}})

    resolution = resolve_template({"entityId": "e1"}, config)

    assert resolution.style.primaryColor == "#8B5CF6"
    assert resolution.style.backgroundColor == "#FFFFFF"
    assert resolution.style.typography == "Inter"
    assert resolution.style.darkMode is False
    assert resolution.images.sectionImages == []


def test_default_sections_are_copies_of_the_catalogue():
    resolution = resolve_template({}, _config(), business_type="saas")

    sections = resolution.sections
    sections[0].content["headline"] = "changed"

    assert SAAS_TEMPLATE.sections[0].content["headline"] != "changed"


def test_catalogue_lookup():
    assert [template.template_id for template in list_templates()] == ["local-business", "saas", "ecommerce"]
    assert get_template_by_id("saas") is SAAS_TEMPLATE
    assert get_template_by_id("missing") is None
    assert get_template_for_business_type(None) is LOCAL_BUSINESS_TEMPLATE
