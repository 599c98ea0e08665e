"""Parsing and rendering of template field text.

A field value is parsed once into an ordered tuple of nodes:

- ``LiteralText``: text copied to the output as-is.
- ``VariableRef``: a ``{{name}}`` token, resolved case-insensitively against the
  page's data values. Unresolved tokens are rendered verbatim.
- ``GenerationDirective``: a ``prompt("...")`` call whose inner text is sent to the
  text generator after variable substitution.
- ``ImageDirective``: an ``image_prompt("...")`` call sent to the image generator.

At most one directive is allowed per field value (per item for list fields). Fields
that break this rule, or whose directive quoting cannot be read unambiguously, raise
``TemplateFieldError`` at parse time so nothing is sent upstream for a broken template.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Mapping, Union

from campaign_pipeline.errors import TemplateFieldError
from campaign_pipeline.schemas.campaigns import TemplateSection

VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")
_DIRECTIVE_START = re.compile(r"\b(image_prompt|prompt)\(\s*([\"'`])")

TextGenerator = Callable[[str], Awaitable[str]]


@dataclass(frozen=True)
class LiteralText:
    text: str


@dataclass(frozen=True)
class VariableRef:
    name: str

    @property
    def token(self) -> str:
        return f"{{{{{self.name}}}}}"


@dataclass(frozen=True)
class GenerationDirective:
    prompt_template: str


@dataclass(frozen=True)
class ImageDirective:
    prompt_template: str


Node = Union[LiteralText, VariableRef, GenerationDirective, ImageDirective]


@dataclass(frozen=True)
class ParsedField:
    key: str
    items: tuple[tuple[Node, ...], ...]
    is_list: bool = False

    @property
    def has_directive(self) -> bool:
        return any(
            isinstance(node, (GenerationDirective, ImageDirective)) for item in self.items for node in item
        )


@dataclass(frozen=True)
class ParsedSection:
    id: str
    name: str
    type: str
    fields: tuple[ParsedField, ...]


def build_lookup(values: Mapping[str, str]) -> dict[str, str]:
    """Lower-cased lookup table; only exact (case-insensitive) names resolve."""
    return {key.lower(): value for key, value in values.items()}


def substitute_variables(template: str, values: Mapping[str, str]) -> str:
    """Replace ``{{name}}`` tokens using a case-insensitive lookup.

    Tokens without a value are left untouched, so applying this twice is a no-op as long
    as no value itself contains a token.
    """
    lookup = build_lookup(values)

    def _replace(match: re.Match[str]) -> str:
        value = lookup.get(match.group(1).lower())
        return match.group(0) if value is None else value

    return VARIABLE_PATTERN.sub(_replace, template)


def referenced_variables(template: str) -> list[str]:
    seen: set[str] = set()
    names: list[str] = []
    for match in VARIABLE_PATTERN.finditer(template):
        lowered = match.group(1).lower()
        if lowered not in seen:
            seen.add(lowered)
            names.append(lowered)
    return names


def _literal_nodes(text: str) -> list[Node]:
    nodes: list[Node] = []
    cursor = 0
    for match in VARIABLE_PATTERN.finditer(text):
        if match.start() > cursor:
            nodes.append(LiteralText(text[cursor : match.start()]))
        nodes.append(VariableRef(match.group(1)))
        cursor = match.end()
    if cursor < len(text):
        nodes.append(LiteralText(text[cursor:]))
    return nodes


def _read_directive(text: str, start: re.Match[str]) -> tuple[Node, int]:
    kind, quote = start.group(1), start.group(2)
    inner_start = start.end()
    closing = re.compile(re.escape(quote) + r"\s*\)").search(text, inner_start)
    if closing is None:
        raise TemplateFieldError(f"{kind}(...) is missing its closing {quote} quote")
    inner = text[inner_start : closing.start()]
    if "\\" + quote in inner or inner.endswith("\\"):
        raise TemplateFieldError(f"escaped quotes are not supported inside {kind}(...)")
    if quote in inner:
        raise TemplateFieldError(f"{kind}(...) text contains an unescaped {quote} quote")
    if not inner.strip():
        raise TemplateFieldError(f"{kind}(...) has an empty prompt")
    node: Node = ImageDirective(inner) if kind == "image_prompt" else GenerationDirective(inner)
    return node, closing.end()


def parse_text(text: str) -> tuple[Node, ...]:
    nodes: list[Node] = []
    cursor = 0
    directive_count = 0
    while True:
        start = _DIRECTIVE_START.search(text, cursor)
        if start is None:
            break
        directive_count += 1
        if directive_count > 1:
            raise TemplateFieldError("only one prompt(...) or image_prompt(...) directive is allowed per value")
        nodes.extend(_literal_nodes(text[cursor : start.start()]))
        directive, cursor = _read_directive(text, start)
        nodes.append(directive)
    nodes.extend(_literal_nodes(text[cursor:]))
    return tuple(nodes)


def parse_field(key: str, value: str | list[str]) -> ParsedField:
    if isinstance(value, list):
        return ParsedField(key=key, items=tuple(parse_text(item) for item in value), is_list=True)
    return ParsedField(key=key, items=(parse_text(value),))


def parse_section(section: TemplateSection) -> ParsedSection:
    fields: list[ParsedField] = []
    for key, value in section.content.items():
        try:
            fields.append(parse_field(key, value))
        except TemplateFieldError as exc:
            raise TemplateFieldError(str(exc), section_id=section.id, field=key) from exc
    return ParsedSection(id=section.id, name=section.name, type=section.type, fields=tuple(fields))


def parse_sections(sections: list[TemplateSection]) -> list[ParsedSection]:
    return [parse_section(section) for section in sections]


async def render_nodes(
    nodes: tuple[Node, ...],
    values: Mapping[str, str],
    *,
    generate_text: TextGenerator,
    generate_image: TextGenerator,
) -> str:
    lookup = build_lookup(values)
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, LiteralText):
            parts.append(node.text)
        elif isinstance(node, VariableRef):
            value = lookup.get(node.name.lower())
            parts.append(node.token if value is None else value)
        elif isinstance(node, GenerationDirective):
            parts.append(await generate_text(substitute_variables(node.prompt_template, values)))
        elif isinstance(node, ImageDirective):
            parts.append(await generate_image(substitute_variables(node.prompt_template, values)))
    return "".join(parts)


async def render_field(
    field: ParsedField,
    values: Mapping[str, str],
    *,
    generate_text: TextGenerator,
    generate_image: TextGenerator,
) -> str:
    # Items are rendered one after another so directive output keeps template order.
    rendered: list[str] = []
    for item in field.items:
        rendered.append(
            await render_nodes(item, values, generate_text=generate_text, generate_image=generate_image)
        )
    return "\n".join(rendered)


def join_section_content(rendered_fields: list[str]) -> str:
    return "".join(f"{text}\n\n" for text in rendered_fields).strip()
