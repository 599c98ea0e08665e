from __future__ import annotations

import itertools
import logging
import math
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from campaign_pipeline.config import settings
from campaign_pipeline.schemas.campaigns import CampaignConfig, DynamicColumn, Entity, TitlePattern
from campaign_pipeline.services.template_parser import referenced_variables

logger = logging.getLogger(__name__)

PATTERN_ID_KEY = "patternId"
ENTITY_ID_KEY = "entityId"


@dataclass(frozen=True)
class PageDraft:
    title: str
    slug: str
    data_values: dict[str, str]
    pattern_id: str
    entity_id: Optional[str]

    def as_record(self) -> dict[str, Any]:
        return {"title": self.title, "slug": self.slug, "data_values": dict(self.data_values)}


@dataclass
class EnumerationResult:
    pages: list[PageDraft] = field(default_factory=list)
    total_combinations: int = 0
    truncated_count: int = 0
    duplicate_slugs: list[str] = field(default_factory=list)


def slugify(value: str) -> str:
    text = value.lower()
    text = re.sub(r"\s+", "-", text)
    return re.sub(r"[^a-z0-9-]", "", text)


def build_slug(title: str, url_prefix: Optional[str]) -> str:
    """Join the entity prefix and the slugified title without leading or trailing slashes."""
    segments = [slugify(segment.strip()) for segment in (url_prefix or "").split("/")]
    segments.append(slugify(title))
    return "/".join(segment for segment in segments if segment)


def columns_for_pattern(pattern: str, columns: list[DynamicColumn]) -> list[DynamicColumn]:
    referenced = set(referenced_variables(pattern))
    return [column for column in columns if column.variableName.lower() in referenced]


def _fill_pattern(pattern: str, combination: dict[str, str]) -> str:
    title = pattern
    for name, value in combination.items():
        title = re.sub(
            re.escape(f"{{{{{name}}}}}"),
            lambda _match, value=value: value,
            title,
            flags=re.IGNORECASE,
        )
    return title


def _pattern_combinations(columns: list[DynamicColumn]) -> Iterator[dict[str, str]]:
    # itertools.product varies the last column fastest, so column 0 is the outer loop.
    names = [column.variableName for column in columns]
    for values in itertools.product(*(column.values for column in columns)):
        yield dict(zip(names, values))


def _drafts_for_pattern(
    title_pattern: TitlePattern,
    columns: list[DynamicColumn],
    entity: Optional[Entity],
) -> Iterator[PageDraft]:
    url_prefix = entity.urlPrefix if entity else None
    for combination in _pattern_combinations(columns):
        title = _fill_pattern(title_pattern.pattern, combination)
        data_values = {
            **combination,
            PATTERN_ID_KEY: title_pattern.id,
            ENTITY_ID_KEY: title_pattern.entityId or "",
        }
        yield PageDraft(
            title=title,
            slug=build_slug(title, url_prefix),
            data_values=data_values,
            pattern_id=title_pattern.id,
            entity_id=title_pattern.entityId,
        )


def enumerate_pages(config: CampaignConfig, *, max_pages: Optional[int] = None) -> EnumerationResult:
    """Expand every title pattern over the dynamic columns it references.

    Pages come out in pattern order, then combination order, and are capped at
    ``max_pages`` across all patterns. Combinations beyond the cap are counted in
    ``truncated_count`` but never materialized.
    """
    limit = settings.CAMPAIGN_PAGE_LIMIT if max_pages is None else max_pages
    result = EnumerationResult()

    for title_pattern in config.titlePatterns:
        columns = columns_for_pattern(title_pattern.pattern, config.dynamicColumns)
        if not columns:
            logger.info(
                "Title pattern references no dynamic column; skipping",
                extra={"pattern_id": title_pattern.id},
            )
            continue

        pattern_total = math.prod(len(column.values) for column in columns)
        result.total_combinations += pattern_total
        remaining = limit - len(result.pages)
        if remaining <= 0:
            continue
        entity = config.entity(title_pattern.entityId)
        result.pages.extend(
            itertools.islice(_drafts_for_pattern(title_pattern, columns, entity), remaining)
        )

    result.truncated_count = max(0, result.total_combinations - len(result.pages))
    slug_counts = Counter(page.slug for page in result.pages)
    result.duplicate_slugs = sorted(slug for slug, count in slug_counts.items() if count > 1)

    if result.truncated_count:
        logger.warning(
            "Page enumeration hit the page limit",
            extra={
                "limit": limit,
                "total_combinations": result.total_combinations,
                "truncated_count": result.truncated_count,
            },
        )
    return result
