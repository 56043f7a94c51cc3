"""Typed response fragments.

A fragment is one incremental unit of a streamed assistant message.  On the
wire it is a mapping tagged by ``type``; here it is a closed union of frozen
pydantic models discriminated on that tag, so every consumer can match on
the concrete class.

Fragments of a given facet kind are *replacing*: the backend resends the
full current value every time.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .enums import FragmentKind
from .exceptions import MalformedFragmentError
from .values import ImageItem, NewsItem, Source


class _WireModel(BaseModel):
    """Base for wire models: camelCase or snake_case keys, extras ignored."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


# -- Facet payload items -----------------------------------------------------


class SourceModel(_WireModel):
    url: str = Field(min_length=1)
    title: str | None = None
    site_name: str | None = None
    favicon: str | None = None
    image: str | None = None
    char_count: int | None = Field(default=None, ge=0)

    def to_value(self) -> Source:
        return Source(
            url=self.url,
            title=self.title or "",
            site_name=self.site_name,
            favicon_url=self.favicon,
            image_url=self.image,
            character_count=self.char_count,
        )


class NewsModel(_WireModel):
    url: str = Field(min_length=1)
    title: str | None = None
    source: str | None = None
    date: str | None = None
    snippet: str | None = None
    image: str | None = None

    def to_value(self) -> NewsItem:
        return NewsItem(
            url=self.url,
            title=self.title or "",
            source=self.source,
            date=self.date,
            snippet=self.snippet,
            image_url=self.image,
        )


class ImageModel(_WireModel):
    url: str = Field(min_length=1)
    title: str | None = None
    thumbnail: str | None = None
    source_url: str | None = None
    width: int | None = None
    height: int | None = None

    def to_value(self) -> ImageItem:
        return ImageItem(
            url=self.url,
            title=self.title or "",
            thumbnail_url=self.thumbnail,
            source_url=self.source_url,
            width=self.width,
            height=self.height,
        )


# -- Payloads ------------------------------------------------------------------


class SourcesPayload(_WireModel):
    sources: list[SourceModel] | None = None
    news_results: list[NewsModel] | None = None
    image_results: list[ImageModel] | None = None


class TickerPayload(_WireModel):
    symbol: str | None = None

    @field_validator("symbol")
    @classmethod
    def _blank_symbol_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None


class FollowUpPayload(_WireModel):
    questions: list[str]


class StatusPayload(_WireModel):
    message: str = ""
    is_complete: bool = False


# -- Fragment variants -----------------------------------------------------------


class TextFragment(_WireModel):
    type: Literal["text"] = "text"
    text: str = ""

    @property
    def kind(self) -> FragmentKind:
        return FragmentKind.TEXT


class SourcesFragment(_WireModel):
    type: Literal["data-sources"] = "data-sources"
    data: SourcesPayload

    @property
    def kind(self) -> FragmentKind:
        return FragmentKind.SOURCES

    def to_group(
        self,
    ) -> tuple[tuple[Source, ...], tuple[NewsItem, ...], tuple[ImageItem, ...]]:
        """Return ``(sources, news, images)``; missing lists become empty.

        Sources are de-duplicated by url, first occurrence wins.
        """
        seen: set[str] = set()
        sources: list[Source] = []
        for item in self.data.sources or []:
            if item.url in seen:
                continue
            seen.add(item.url)
            sources.append(item.to_value())
        news = tuple(item.to_value() for item in self.data.news_results or [])
        images = tuple(item.to_value() for item in self.data.image_results or [])
        return tuple(sources), news, images


class TickerFragment(_WireModel):
    type: Literal["data-ticker"] = "data-ticker"
    data: TickerPayload

    @property
    def kind(self) -> FragmentKind:
        return FragmentKind.TICKER


class FollowUpFragment(_WireModel):
    type: Literal["data-followup"] = "data-followup"
    data: FollowUpPayload

    @property
    def kind(self) -> FragmentKind:
        return FragmentKind.FOLLOWUP


class StatusFragment(_WireModel):
    type: Literal["data-status"] = "data-status"
    data: StatusPayload

    @property
    def kind(self) -> FragmentKind:
        return FragmentKind.STATUS


Fragment = Annotated[
    Union[TextFragment, SourcesFragment, TickerFragment, FollowUpFragment, StatusFragment],
    Field(discriminator="type"),
]

_FRAGMENT_TYPES = (
    TextFragment,
    SourcesFragment,
    TickerFragment,
    FollowUpFragment,
    StatusFragment,
)

_FRAGMENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(Fragment)


def parse_fragment(raw: Any, position: int | None = None) -> Fragment:
    """Validate *raw* into a typed fragment.

    Already-typed fragments are returned unchanged.

    Raises
    ------
    MalformedFragmentError
        If *raw* is not a mapping, has an unknown ``type`` or a payload that
        does not validate.
    """
    if isinstance(raw, _FRAGMENT_TYPES):
        return raw
    if not isinstance(raw, Mapping):
        raise MalformedFragmentError(
            f"fragment must be a mapping, got {type(raw).__name__}",
            position=position,
        )
    try:
        return _FRAGMENT_ADAPTER.validate_python(dict(raw))
    except ValidationError as exc:
        raise MalformedFragmentError(
            f"invalid fragment of type {raw.get('type')!r}: "
            f"{exc.error_count()} validation error(s)",
            position=position,
            kind=str(raw.get("type")),
            details={"errors": exc.errors(include_url=False)},
        ) from exc


def fragment_text(raw: Any) -> str:
    """Return the prose carried by *raw* if it is a text fragment, else ``""``."""
    if isinstance(raw, TextFragment):
        return raw.text
    if isinstance(raw, Mapping) and raw.get("type") == "text":
        text = raw.get("text")
        return text if isinstance(text, str) else ""
    return ""
