#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/options.py
"""Render options.

This module defines the immutable configuration threaded through every pass
of a render call. Options are never mutated; modified copies are produced
with :meth:`CloneFrozenMixin.create_updated`.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

from safemd.constants import (
    DEFAULT_ALLOWED_ATTRIBUTES,
    DEFAULT_ALLOWED_TAGS,
    DEFAULT_COLLABORATOR_TIMEOUT,
    DEFAULT_EMOTICONS,
    DEFAULT_LIMIT_DEPTH,
    DEFAULT_LOCALE,
    DEFAULT_MENTION_URL_TEMPLATE,
    DROP_CONTENT_TAGS,
    MAX_LIMIT_DEPTH,
    MIN_LIMIT_DEPTH,
    SAFE_URL_SCHEMES,
)
from safemd.embeds import DEFAULT_EMBED_PROVIDERS, EmbedProvider
from safemd.exceptions import ValidationError
from safemd.typography import guillemets

MentionLookup = Callable[[str], Union[bool, Awaitable[bool]]]
QuoteFilterFunc = Callable[[str, str], str]
Highlighter = Callable[[str, Optional[str]], Optional[str]]
EmbedFetcher = Callable[[str, str], Awaitable[Mapping[str, Any]]]

# camelCase keys accepted by RenderOptions.from_mapping
_MAPPING_ALIASES = {
    "limitDepth": "limit_depth",
    "disableTokenizers.internal": "disable_tokenizers",
    "mentionResolver": "mention_resolver",
    "mentionUrlTemplate": "mention_url_template",
    "quoteFilter": "quote_filter",
    "collaboratorTimeout": "collaborator_timeout",
    "embedFetcher": "embed_fetcher",
}


@dataclass(frozen=True)
class CloneFrozenMixin:
    """Mixin providing frozen dataclass cloning capabilities."""

    def create_updated(self, **kwargs: Any) -> Self:
        """Create a new instance with updated field values.

        Parameters
        ----------
        **kwargs : Any
            Field names and their new values

        Returns
        -------
        Self
            New instance with specified fields updated

        """
        return replace(self, **kwargs)


@dataclass(frozen=True)
class SanitizerPolicy(CloneFrozenMixin):
    """Allow-lists applied by the sanitizer.

    Parameters
    ----------
    allowed_tags : frozenset of str
        Tags kept as-is; anything else is unwrapped
    allowed_attributes : mapping of str to frozenset of str
        Attributes kept per tag, with ``"*"`` applying to every tag
    drop_content_tags : frozenset of str
        Tags removed together with their content
    url_schemes : frozenset of str
        Schemes accepted in ``href`` and ``src``
    embed_providers : tuple of EmbedProvider
        Providers whose iframes are kept

    """

    allowed_tags: frozenset[str] = field(
        default=DEFAULT_ALLOWED_TAGS,
        metadata={"help": "Tags kept in the output; others are unwrapped", "importance": "security"},
    )
    allowed_attributes: Mapping[str, frozenset[str]] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_ALLOWED_ATTRIBUTES)),
        metadata={"help": "Attributes kept per tag ('*' applies to all tags)", "importance": "security"},
    )
    drop_content_tags: frozenset[str] = field(
        default=DROP_CONTENT_TAGS,
        metadata={"help": "Tags removed together with their content", "importance": "security"},
    )
    url_schemes: frozenset[str] = field(
        default=SAFE_URL_SCHEMES,
        metadata={"help": "URL schemes accepted in href and src", "importance": "security"},
    )
    embed_providers: tuple[EmbedProvider, ...] = field(
        default=DEFAULT_EMBED_PROVIDERS,
        metadata={"help": "Providers whose iframes are trusted", "importance": "security"},
    )

    def attributes_for(self, tag_name: str) -> frozenset[str]:
        return self.allowed_attributes.get("*", frozenset()) | self.allowed_attributes.get(tag_name, frozenset())


@dataclass(frozen=True)
class RenderOptions(CloneFrozenMixin):
    """Configuration for a single render call.

    Parameters
    ----------
    limit_depth : int, default 100
        Maximum AST depth; deeper documents raise ComplexityExceeded
    disable_tokenizers : tuple of str, default ()
        Tokenizer or extension names excluded from the grammar
    extensions : mapping of str to bool, default empty
        Per-extension toggles; ``False`` disables every tokenizer in the group
    mention_resolver : callable, optional
        ``name -> bool`` (or awaitable bool) confirming a mention target.
        Mentions are only recognized when a resolver is configured.
    mention_url_template : str, default "/@{name}"
        Link target for confirmed mentions
    locale : str, default "en"
        Locale handed to the quote filter
    quote_filter : callable or None
        ``(text, locale) -> text`` applied to text leaves; None disables
    highlight : bool, default True
        Whether code blocks are syntax highlighted
    highlighter : callable, optional
        ``(code, language) -> html or None`` replacing the pygments default
    collaborator_timeout : float, default 2.0
        Seconds allowed for each mention lookup or embed fetch
    embed_fetcher : callable, optional
        ``(url, endpoint) -> awaitable dict`` returning oEmbed metadata
    emoticons : mapping of str to str
        Emoticon code to image URL
    sanitizer : SanitizerPolicy
        Sanitizer allow-lists

    """

    limit_depth: int = field(
        default=DEFAULT_LIMIT_DEPTH,
        metadata={"help": "Maximum AST depth accepted before ComplexityExceeded", "importance": "security"},
    )
    disable_tokenizers: tuple[str, ...] = field(
        default=(),
        metadata={"help": "Tokenizer or extension names to exclude from the grammar", "importance": "core"},
    )
    extensions: Mapping[str, bool] = field(
        default_factory=dict,
        metadata={"help": "Extension toggles: name -> enabled", "importance": "core"},
    )
    mention_resolver: Optional[MentionLookup] = field(
        default=None,
        metadata={"help": "Callable confirming mention targets (sync or async)", "importance": "core"},
    )
    mention_url_template: str = field(
        default=DEFAULT_MENTION_URL_TEMPLATE,
        metadata={"help": "Link target for confirmed mentions, with a {name} placeholder", "importance": "advanced"},
    )
    locale: str = field(
        default=DEFAULT_LOCALE,
        metadata={"help": "Locale used by the quote filter", "importance": "core"},
    )
    quote_filter: Optional[QuoteFilterFunc] = field(
        default=guillemets,
        metadata={"help": "Quote substitution filter applied to text; None disables it", "importance": "advanced"},
    )
    highlight: bool = field(
        default=True,
        metadata={"help": "Syntax highlight fenced code blocks", "importance": "core"},
    )
    highlighter: Optional[Highlighter] = field(
        default=None,
        metadata={"help": "Custom highlighter replacing pygments", "importance": "advanced"},
    )
    collaborator_timeout: float = field(
        default=DEFAULT_COLLABORATOR_TIMEOUT,
        metadata={"help": "Seconds allowed per mention lookup or embed fetch", "importance": "advanced"},
    )
    embed_fetcher: Optional[EmbedFetcher] = field(
        default=None,
        metadata={"help": "Async oEmbed metadata fetcher", "importance": "advanced"},
    )
    emoticons: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_EMOTICONS)),
        metadata={"help": "Emoticon code to image URL", "importance": "advanced"},
    )
    sanitizer: SanitizerPolicy = field(
        default_factory=SanitizerPolicy,
        metadata={"help": "Sanitizer allow-lists", "importance": "security"},
    )

    def __post_init__(self) -> None:
        """Validate ranges and freeze mutable containers.

        Raises
        ------
        ValueError
            If any field value is outside its valid range.

        """
        if isinstance(self.limit_depth, bool) or not isinstance(self.limit_depth, int):
            raise ValueError(f"limit_depth must be an integer, got {self.limit_depth!r}")
        if not MIN_LIMIT_DEPTH <= self.limit_depth <= MAX_LIMIT_DEPTH:
            raise ValueError(
                f"limit_depth must be between {MIN_LIMIT_DEPTH} and {MAX_LIMIT_DEPTH}, got {self.limit_depth}"
            )
        if self.collaborator_timeout <= 0:
            raise ValueError(f"collaborator_timeout must be positive, got {self.collaborator_timeout}")
        if "{name}" not in self.mention_url_template:
            raise ValueError("mention_url_template must contain a {name} placeholder")

        if isinstance(self.disable_tokenizers, str):
            object.__setattr__(self, "disable_tokenizers", (self.disable_tokenizers,))
        else:
            object.__setattr__(self, "disable_tokenizers", tuple(self.disable_tokenizers))
        object.__setattr__(self, "extensions", MappingProxyType(dict(self.extensions)))
        object.__setattr__(self, "emoticons", MappingProxyType(dict(self.emoticons)))

    def is_disabled(self, *names: str) -> bool:
        """Check whether any of the given tokenizer/extension names is switched off."""
        for name in names:
            if name in self.disable_tokenizers:
                return True
            if self.extensions.get(name) is False:
                return True
        return False

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> RenderOptions:
        """Build options from a plain mapping.

        Accepts the camelCase keys used by the public interface
        (``limitDepth``, ``disableTokenizers.internal``, ``mentionResolver``,
        ``locale``), a nested ``{"disableTokenizers": {"internal": [...]}}``
        form, and the snake_case field names.

        Parameters
        ----------
        mapping : mapping or None
            Raw option values

        Returns
        -------
        RenderOptions
            Validated options

        Raises
        ------
        ValidationError
            If a key is unknown or a value is out of range

        """
        if not mapping:
            return cls()

        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in mapping.items():
            if key == "disableTokenizers" and isinstance(value, Mapping):
                kwargs["disable_tokenizers"] = tuple(value.get("internal", ()))
                continue
            name = _MAPPING_ALIASES.get(key, key)
            if name not in known:
                raise ValidationError(f"Unknown render option: {key}", parameter_name=key, parameter_value=value)
            kwargs[name] = value

        try:
            return cls(**kwargs)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid render options: {e}", original_error=e) from e


def coerce_options(options: RenderOptions | Mapping[str, Any] | None) -> RenderOptions:
    """Return ``options`` as a RenderOptions instance."""
    if isinstance(options, RenderOptions):
        return options
    return RenderOptions.from_mapping(options)
