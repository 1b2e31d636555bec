"""Inline rich-text elements of a RemNote document.

A Rem's text is a sequence of inline elements. Plain strings are literal
text; everything else is a record tagged by its ``i`` field. Each tag maps to
one frozen dataclass below, and anything unrecognised becomes an
``UnknownElement`` so newer payloads still render.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PlainText:
    """Literal text."""

    text: str


@dataclass(frozen=True)
class FormattedText:
    """A styled span (tag ``m``)."""

    text: str
    code: bool = False
    bold: bool = False
    italic: bool = False
    url: str | None = None
    link_id: str | None = None


@dataclass(frozen=True)
class Reference:
    """A reference to another Rem (tag ``q``)."""

    ref_id: str | None
    deleted_text: "RichText | None" = None


@dataclass(frozen=True)
class GlobalName:
    """A global-name reference (tag ``g``). Has no fallback text."""

    ref_id: str | None


@dataclass(frozen=True)
class Math:
    """LaTeX source (tag ``x``)."""

    text: str = ""


@dataclass(frozen=True)
class Annotation:
    """Annotation span (tag ``n``)."""

    text: str = ""


@dataclass(frozen=True)
class Image:
    """Embedded image (tag ``i``)."""

    title: str | None = None


@dataclass(frozen=True)
class Audio:
    """Embedded audio (tag ``a``)."""


@dataclass(frozen=True)
class Drawing:
    """Embedded drawing (tag ``r``)."""


@dataclass(frozen=True)
class SectionDelimiter:
    """Front/back split point of a flashcard (tag ``s``)."""


@dataclass(frozen=True)
class EmbeddedElement:
    """Plugin control element (tag ``p``)."""


@dataclass(frozen=True)
class UnknownElement:
    """Record with an unrecognised tag.

    ``text`` is None when the raw record carried no ``text`` key at all.
    """

    tag: str | None
    text: str | None = None


RichTextElement = (
    PlainText
    | FormattedText
    | Reference
    | GlobalName
    | Math
    | Annotation
    | Image
    | Audio
    | Drawing
    | SectionDelimiter
    | EmbeddedElement
    | UnknownElement
)

RichText = tuple[RichTextElement, ...]

_SIMPLE_TAGS: dict[str, type] = {
    "a": Audio,
    "r": Drawing,
    "s": SectionDelimiter,
    "p": EmbeddedElement,
}


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def parse_element(raw: Any) -> RichTextElement | None:
    """Convert one raw JSON element into a typed element.

    Returns None for values that are neither strings nor objects.
    """
    if isinstance(raw, str):
        return PlainText(raw)
    if not isinstance(raw, dict):
        return None

    tag = raw.get("i")
    text = raw.get("text")
    text_str = text if isinstance(text, str) else ""

    if tag == "m":
        return FormattedText(
            text=text_str,
            code=raw.get("code") is True,
            bold=raw.get("b") is True,
            italic=raw.get("l") is True,
            url=_str_or_none(raw.get("url")),
            link_id=_str_or_none(raw.get("qId")),
        )
    if tag == "q":
        deleted = raw.get("textOfDeletedRem")
        return Reference(
            ref_id=_str_or_none(raw.get("_id")),
            deleted_text=parse_rich_text(deleted) if deleted else None,
        )
    if tag == "g":
        return GlobalName(ref_id=_str_or_none(raw.get("_id")))
    if tag == "x":
        return Math(text_str)
    if tag == "n":
        return Annotation(text_str)
    if tag == "i":
        return Image(title=_str_or_none(raw.get("title")))
    if tag in _SIMPLE_TAGS:
        return _SIMPLE_TAGS[tag]()
    return UnknownElement(tag=tag, text=text_str if "text" in raw else None)


def parse_rich_text(raw: Any) -> RichText:
    """Parse a raw JSON rich-text list. Non-sequences parse to an empty tuple."""
    if isinstance(raw, (list, tuple)):
        elements = (parse_element(item) for item in raw)
        return tuple(e for e in elements if e is not None)
    return ()


def find_delimiter(content: Sequence[RichTextElement]) -> int:
    """Index of the first section delimiter, or -1."""
    for index, element in enumerate(content):
        if isinstance(element, SectionDelimiter):
            return index
    return -1


def rich_text_to_json(content: Sequence[RichTextElement]) -> list[Any]:
    """Serialize typed elements back to the raw JSON shape."""
    out: list[Any] = []
    for element in content:
        if isinstance(element, PlainText):
            out.append(element.text)
        elif isinstance(element, FormattedText):
            record: dict[str, Any] = {"i": "m", "text": element.text}
            if element.code:
                record["code"] = True
            if element.bold:
                record["b"] = True
            if element.italic:
                record["l"] = True
            if element.url:
                record["url"] = element.url
            if element.link_id:
                record["qId"] = element.link_id
            out.append(record)
        elif isinstance(element, Reference):
            record = {"i": "q", "_id": element.ref_id}
            if element.deleted_text:
                record["textOfDeletedRem"] = rich_text_to_json(element.deleted_text)
            out.append(record)
        elif isinstance(element, GlobalName):
            out.append({"i": "g", "_id": element.ref_id})
        elif isinstance(element, Math):
            out.append({"i": "x", "text": element.text})
        elif isinstance(element, Annotation):
            out.append({"i": "n", "text": element.text})
        elif isinstance(element, Image):
            out.append({"i": "i", "title": element.title} if element.title else {"i": "i"})
        elif isinstance(element, UnknownElement):
            record = {"i": element.tag}
            if element.text is not None:
                record["text"] = element.text
            out.append(record)
        else:
            tag = next(k for k, v in _SIMPLE_TAGS.items() if isinstance(element, v))
            out.append({"i": tag})
    return out
