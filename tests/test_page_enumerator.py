import logging

from campaign_pipeline.schemas.campaigns import CampaignConfig
from campaign_pipeline.services.page_enumerator import (
    build_slug,
    columns_for_pattern,
    enumerate_pages,
    slugify,
)


def _config(columns, patterns, entities=None) -> CampaignConfig:
    return CampaignConfig.model_validate(
        {"dynamicColumns": columns, "titlePatterns": patterns, "entities": entities or []}
    )


def _column(name: str, values: list[str]) -> dict:
    return {"id": f"col-{name}", "variableName": name, "displayName": name.title(), "values": values}


def test_two_services_one_city_yields_two_pages(campaign_config):
    result = enumerate_pages(CampaignConfig.model_validate(campaign_config))

    assert [page.title for page in result.pages] == [
        "Best Plumbing Services in Austin",
        "Best Roofing Services in Austin",
    ]
    for page in result.pages:
        assert page.data_values["patternId"] == "pattern-1"
        assert page.data_values["entityId"] == "entity-1"
        assert page.data_values["city"] == "Austin"
    assert result.total_combinations == 2
    assert result.truncated_count == 0
    assert result.duplicate_slugs == []


def test_page_count_is_product_of_referenced_column_sizes():
    config = _config(
        [_column("service", ["a", "b", "c"]), _column("city", ["x", "y"]), _column("unused", ["1", "2", "3", "4"])],
        [{"id": "p1", "pattern": "{{service}} in {{city}}"}],
    )

    result = enumerate_pages(config)

    assert len(result.pages) == 6
    assert result.total_combinations == 6
    assert all("unused" not in page.data_values for page in result.pages)


def test_combinations_vary_last_column_fastest():
    config = _config(
        [_column("service", ["Plumbing", "Roofing"]), _column("city", ["Austin", "Dallas"])],
        [{"id": "p1", "pattern": "{{service}} {{city}}"}],
    )

    titles = [page.title for page in enumerate_pages(config).pages]

    assert titles == ["Plumbing Austin", "Plumbing Dallas", "Roofing Austin", "Roofing Dallas"]


def test_column_with_no_values_yields_zero_pages():
    config = _config(
        [_column("service", ["Plumbing"]), _column("city", [])],
        [{"id": "p1", "pattern": "{{service}} in {{city}}"}],
    )

    result = enumerate_pages(config)

    assert result.pages == []
    assert result.total_combinations == 0


def test_pattern_without_column_reference_contributes_nothing():
    config = _config([_column("service", ["Plumbing"])], [{"id": "p1", "pattern": "Static title"}])

    assert enumerate_pages(config).pages == []


def test_variable_names_match_case_insensitively():
    config = _config([_column("City", ["Austin"])], [{"id": "p1", "pattern": "Movers in {{CITY}}"}])

    result = enumerate_pages(config)

    assert [page.title for page in result.pages] == ["Movers in Austin"]
    assert result.pages[0].data_values["city"] == "Austin"


def test_unmatched_token_stays_literal_in_title():
    config = _config(
        [_column("service", ["Plumbing"])],
        [{"id": "p1", "pattern": "{{service}} near {{landmark}}"}],
    )

    result = enumerate_pages(config)

    assert [page.title for page in result.pages] == ["Plumbing near {{landmark}}"]


def test_cap_keeps_first_pages_in_pattern_then_combination_order(caplog):
    config = _config(
        [_column("a", [str(i) for i in range(15)]), _column("b", [str(i) for i in range(15)])],
        [
            {"id": "p1", "pattern": "{{a}}-{{b}}"},
            {"id": "p2", "pattern": "second {{a}}"},
        ],
    )

    with caplog.at_level(logging.WARNING):
        result = enumerate_pages(config)

    assert len(result.pages) == 200
    assert result.total_combinations == 240
    assert result.truncated_count == 40
    assert result.pages[0].title == "0-0"
    assert result.pages[199].title == "13-4"
    assert all(page.pattern_id == "p1" for page in result.pages)
    assert "page limit" in caplog.text


def test_cap_spills_into_later_patterns():
    config = _config(
        [_column("a", [str(i) for i in range(150)])],
        [
            {"id": "p1", "pattern": "first {{a}}"},
            {"id": "p2", "pattern": "second {{a}}"},
        ],
    )

    result = enumerate_pages(config, max_pages=200)

    assert len(result.pages) == 200
    assert [page.pattern_id for page in result.pages].count("p2") == 50
    assert result.truncated_count == 100


def test_enumeration_is_deterministic(campaign_config):
    config = CampaignConfig.model_validate(campaign_config)

    assert enumerate_pages(config).pages == enumerate_pages(config).pages


def test_slug_from_root_prefix_has_no_leading_slash():
    assert build_slug("Best Plumbing Services in Austin", "/") == "best-plumbing-services-in-austin"


def test_slug_is_nested_under_entity_prefix():
    assert build_slug("Roofing in Austin!", "/Services/") == "services/roofing-in-austin"


def test_slugify_strips_disallowed_characters():
    assert slugify("Café & Bar  Deals") == "caf--bar-deals"


def test_entity_prefix_applied_to_generated_slugs():
    config = _config(
        [_column("city", ["Austin"])],
        [{"id": "p1", "pattern": "Movers in {{city}}", "entityId": "e1"}],
        entities=[{"id": "e1", "urlPrefix": "/movers/"}],
    )

    page = enumerate_pages(config).pages[0]

    assert page.slug == "movers/movers-in-austin"
    assert page.entity_id == "e1"


def test_pattern_without_entity_records_empty_entity_id():
    config = _config([_column("city", ["Austin"])], [{"id": "p1", "pattern": "{{city}}"}])

    page = enumerate_pages(config).pages[0]

    assert page.data_values["entityId"] == ""
    assert page.entity_id is None


def test_duplicate_slugs_are_kept_and_reported():
    config = _config(
        [_column("city", ["Austin"])],
        [
            {"id": "p1", "pattern": "Movers in {{city}}"},
            {"id": "p2", "pattern": "Movers In {{city}}"},
        ],
    )

    result = enumerate_pages(config)

    assert len(result.pages) == 2
    assert result.duplicate_slugs == ["movers-in-austin"]


def test_columns_for_pattern_returns_referenced_columns_in_column_order():
    config = _config(
        [_column("service", ["a"]), _column("city", ["b"]), _column("state", ["c"])],
        [],
    )

    columns = columns_for_pattern("{{state}} {{service}}", config.dynamicColumns)

    assert [column.variableName for column in columns] == ["service", "state"]


def test_entity_prefix_segments_are_slugified():
    assert build_slug("Best Plumbing", "/Plumbing Services/") == "plumbing-services/best-plumbing"
    assert build_slug("Best Plumbing", "/Home & Garden/Repairs!/") == "home--garden/repairs/best-plumbing"


def test_spaced_variable_names_still_enumerate():
    config = _config(
        [_column("Service Type", ["Plumbing", "Roofing"])],
        [{"id": "p1", "pattern": "Best {{service type}} near me"}],
    )

    result = enumerate_pages(config)

    assert [page.title for page in result.pages] == ["Best Plumbing near me", "Best Roofing near me"]
    assert result.pages[0].data_values["service_type"] == "Plumbing"
