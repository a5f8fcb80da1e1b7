#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/tokenizers/registry.py
"""Ordered registry of block and inline tokenizers.

A tokenizer contributes one syntax feature to the grammar. The registry keeps
tokenizers in an explicit priority order and builds a fresh mistune parser
for every render call whose rule lists follow that order exactly: when two
rules could match at the same position, the one registered first claims the
span and later rules never see it.

The base grammar is itself a set of tokenizers (marked ``internal``), so
built-in syntax and extensions are toggled through the same mechanism.

Examples
--------
Register a tokenizer ahead of the link rule:

    >>> registry = default_registry().copy()
    >>> registry.register(my_tokenizer, before="link")
    >>> registry.freeze()

"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Literal, Match, Optional

import mistune
from mistune.block_parser import BlockParser
from mistune.inline_parser import InlineParser

from safemd.constants import PARSER_NESTING_HEADROOM
from safemd.exceptions import ValidationError
from safemd.options import RenderOptions

logger = logging.getLogger(__name__)

TokenizerLevel = Literal["block", "inline"]
RuleFunc = Callable[[Any, Match[str], Any], Optional[int]]
InstallFunc = Callable[[mistune.Markdown, RenderOptions], None]

# Rules the base grammar always needs at the end of each list
_BLOCK_TAIL_RULES = ("blank_line",)
_INLINE_TAIL_RULES = ("softbreak",)


class CommentBlockParser(BlockParser):
    """Block parser whose link reference definitions never claim ``[^label]``.

    That label shape belongs to footnotes. When the footnote tokenizers are
    off, or decline a label, the line stays paragraph text.
    """

    def parse_ref_link(self, m: Match[str], state: Any) -> Optional[int]:
        if m.group("reflink_1").lstrip().startswith("^"):
            return None
        return super().parse_ref_link(m, state)


@dataclass(frozen=True)
class Tokenizer:
    """A block or inline syntax recognizer.

    A tokenizer either brings its own ``pattern`` and ``parse`` function, or
    names rules that already exist in mistune (``rules``), optionally after
    an ``install`` hook has registered them.

    Parameters
    ----------
    name : str
        Unique tokenizer name; used in ``disable_tokenizers``
    level : {'block', 'inline'}
        Grammar the tokenizer belongs to
    rules : tuple of str, default ()
        mistune rule names contributed, in priority order. Defaults to
        ``(name,)`` for tokenizers with their own pattern.
    pattern : str or None, default = None
        Regular expression recognizing the syntax start
    parse : callable or None, default = None
        ``(parser, match, state) -> end position or None``
    install : callable or None, default = None
        ``(markdown, options) -> None`` hook run before rules are applied
    extension : str or None, default = None
        Extension group the tokenizer belongs to; disabling the group
        disables every member
    internal : bool, default = False
        True for the pre-registered base grammar
    default_enabled : bool, default = True
        Whether the tokenizer is active when no toggle mentions it
    requires : callable or None, default = None
        ``options -> bool`` further gating default activation

    """

    name: str
    level: TokenizerLevel
    rules: tuple[str, ...] = ()
    pattern: Optional[str] = None
    parse: Optional[RuleFunc] = None
    install: Optional[InstallFunc] = None
    extension: Optional[str] = None
    internal: bool = False
    default_enabled: bool = True
    requires: Optional[Callable[[RenderOptions], bool]] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.level not in ("block", "inline"):
            raise ValueError(f"Tokenizer level must be 'block' or 'inline', got {self.level!r}")
        if (self.pattern is None) != (self.parse is None):
            raise ValueError(f"Tokenizer {self.name!r} needs both a pattern and a parse function")
        if not self.rules:
            if self.parse is None and self.install is None:
                raise ValueError(f"Tokenizer {self.name!r} contributes no rules")
            object.__setattr__(self, "rules", (self.name,))

    def is_enabled(self, options: RenderOptions) -> bool:
        """Decide whether this tokenizer takes part in a render call."""
        if self.name in options.disable_tokenizers:
            return False
        if self.extension is not None and self.extension in options.disable_tokenizers:
            return False

        toggle = options.extensions.get(self.name)
        if toggle is None and self.extension is not None:
            toggle = options.extensions.get(self.extension)
        if toggle is not None:
            return bool(toggle)

        if not self.default_enabled:
            return False
        return self.requires is None or self.requires(options)

    def activate(self, markdown: mistune.Markdown, options: RenderOptions) -> None:
        """Register this tokenizer's rules on a mistune instance."""
        if self.install is not None:
            self.install(markdown, options)
        if self.parse is not None:
            parser: Any = markdown.block if self.level == "block" else markdown.inline
            parser.register(self.rules[0], self.pattern, self.parse)


class TokenizerRegistry:
    """Priority-ordered collection of tokenizers.

    The registry is mutable until :meth:`freeze` is called; after that every
    mutating method raises, so a frozen registry can be shared by concurrent
    render calls.
    """

    def __init__(self, tokenizers: tuple[Tokenizer, ...] | list[Tokenizer] = ()):
        self._tokenizers: list[Tokenizer] = []
        self._frozen = False
        for tokenizer in tokenizers:
            self.register(tokenizer)

    def __iter__(self) -> Iterator[Tokenizer]:
        return iter(tuple(self._tokenizers))

    def __len__(self) -> int:
        return len(self._tokenizers)

    def __contains__(self, name: object) -> bool:
        return any(t.name == name for t in self._tokenizers)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def names(self, level: TokenizerLevel | None = None) -> list[str]:
        return [t.name for t in self._tokenizers if level is None or t.level == level]

    def get(self, name: str) -> Tokenizer:
        for tokenizer in self._tokenizers:
            if tokenizer.name == name:
                return tokenizer
        raise KeyError(name)

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RuntimeError("Tokenizer registry is frozen; use copy() to derive a new registry")

    def register(self, tokenizer: Tokenizer, before: str | None = None, after: str | None = None) -> None:
        """Add a tokenizer at a given priority.

        Parameters
        ----------
        tokenizer : Tokenizer
            Tokenizer to add
        before : str, optional
            Name of a registered tokenizer this one must precede
        after : str, optional
            Name of a registered tokenizer this one must follow

        Raises
        ------
        ValidationError
            If the name is taken or the anchor tokenizer is unknown

        """
        self._check_mutable()
        if tokenizer.name in self:
            raise ValidationError(f"Tokenizer already registered: {tokenizer.name}", parameter_name="name")
        if before is not None and after is not None:
            raise ValidationError("Pass either before or after, not both")

        anchor = before if before is not None else after
        if anchor is None:
            self._tokenizers.append(tokenizer)
        else:
            try:
                index = self._tokenizers.index(self.get(anchor))
            except KeyError as e:
                raise ValidationError(f"Unknown anchor tokenizer: {anchor}", parameter_name="before") from e
            self._tokenizers.insert(index if before is not None else index + 1, tokenizer)
        logger.debug("Registered %s tokenizer %s", tokenizer.level, tokenizer.name)

    def unregister(self, name: str) -> Tokenizer:
        self._check_mutable()
        tokenizer = self.get(name)
        self._tokenizers.remove(tokenizer)
        return tokenizer

    def freeze(self) -> TokenizerRegistry:
        self._frozen = True
        return self

    def copy(self) -> TokenizerRegistry:
        """Return an unfrozen registry with the same tokenizers in the same order."""
        return TokenizerRegistry(self._tokenizers)

    def enabled(self, options: RenderOptions) -> list[Tokenizer]:
        """Return the tokenizers active for ``options``, in priority order."""
        return [t for t in self._tokenizers if t.is_enabled(options)]

    def build_markdown(self, options: RenderOptions) -> mistune.Markdown:
        """Build a mistune parser whose grammar follows this registry.

        Parameters
        ----------
        options : RenderOptions
            Options of the current render call

        Returns
        -------
        mistune.Markdown
            A parser producing tokens only (no renderer), with block, block
            quote, list-item and inline rule lists in registry order

        """
        block = CommentBlockParser(max_nested_level=options.limit_depth + PARSER_NESTING_HEADROOM)
        inline = InlineParser()
        markdown = mistune.Markdown(renderer=None, block=block, inline=inline)

        block_rules: list[str] = []
        inline_rules: list[str] = []
        for tokenizer in self.enabled(options):
            tokenizer.activate(markdown, options)
            target = block_rules if tokenizer.level == "block" else inline_rules
            target.extend(rule for rule in tokenizer.rules if rule not in target)

        block_rules.extend(_BLOCK_TAIL_RULES)
        inline_rules.extend(_INLINE_TAIL_RULES)

        markdown.block.rules = block_rules
        markdown.block.block_quote_rules = list(block_rules)
        markdown.block.list_rules = list(block_rules)
        markdown.inline.rules = inline_rules
        logger.debug("Grammar built: block=%s inline=%s", block_rules, inline_rules)
        return markdown
