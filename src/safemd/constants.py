#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/constants.py
"""Constants and default values shared across the safemd pipeline.

Centralizing these values keeps the tokenizers, post-processors, sanitizer
and options in agreement about limits and allow-lists.
"""

from __future__ import annotations

from typing import Literal

# Depth guard
DEFAULT_LIMIT_DEPTH = 100  # Maximum AST depth accepted by render()
MIN_LIMIT_DEPTH = 1
MAX_LIMIT_DEPTH = 128  # Keeps every recursive pass well inside the interpreter recursion limit
# Extra block nesting handed to the base grammar beyond the AST limit, so the
# guard (not the grammar) decides when a document is too deep.
PARSER_NESTING_HEADROOM = 2

# Collaborators
DEFAULT_COLLABORATOR_TIMEOUT = 2.0  # Seconds per mention lookup / embed fetch
DEFAULT_LOCALE = "en"
DEFAULT_MENTION_URL_TEMPLATE = "/@{name}"
DEFAULT_USER_AGENT = "safemd/0.1 (+oembed)"
MAX_OEMBED_RESPONSE_BYTES = 256 * 1024

# Diagnostic kinds
DiagnosticKind = Literal["unresolved-reference", "sanitized-content"]
UNRESOLVED_REFERENCE: DiagnosticKind = "unresolved-reference"
SANITIZED_CONTENT: DiagnosticKind = "sanitized-content"

# URL safety
SAFE_URL_SCHEMES = frozenset({"http", "https", "mailto"})
URL_ATTRIBUTES = frozenset({"href", "src"})
URL_SCHEME_PATTERN = r"^([a-zA-Z][a-zA-Z0-9+.\-]*):"
MAX_URL_LENGTH = 2048

# Dangerous null-like and zero-width characters that can bypass XSS filters
DANGEROUS_NULL_LIKE_CHARS = [
    "\x00",  # NULL
    "\ufeff",  # BOM/Zero Width No-Break Space
    "\u200b",  # Zero Width Space
    "\u200c",  # Zero Width Non-Joiner
    "\u200d",  # Zero Width Joiner
    "\u2060",  # Word Joiner
]

# Code blocks
SAFE_LANGUAGE_IDENTIFIER_PATTERN = r"^[a-zA-Z0-9_+\-]+$"
MAX_LANGUAGE_IDENTIFIER_LENGTH = 50
LANGUAGE_ALIASES = {
    "latex": "tex",
    "js": "javascript",
    "py": "python",
    "sh": "bash",
    "yml": "yaml",
}
# Languages rendered as plain escaped text, never highlighted
PLAIN_CODE_LANGUAGES = frozenset({"console", "text", "plain", "plaintext", "txt"})

# Math
MAX_MATH_LENGTH = 4096
MHCHEM_COMMANDS = ("\\ce", "\\pu")

# Figures
FIGURE_CAPTION_MARKER = "Figure:"

# Sanitizer allow-lists
DEFAULT_ALLOWED_TAGS = frozenset(
    {
        "a",
        "abbr",
        "b",
        "blockquote",
        "br",
        "code",
        "dd",
        "del",
        "div",
        "dl",
        "dt",
        "em",
        "figcaption",
        "figure",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "hr",
        "i",
        "iframe",
        "img",
        "kbd",
        "li",
        "ol",
        "p",
        "pre",
        "s",
        "section",
        "span",
        "strong",
        "sub",
        "sup",
        "table",
        "tbody",
        "td",
        "th",
        "thead",
        "tr",
        "u",
        "ul",
    }
)

# Elements removed together with their content; their text is never meant to be read
DROP_CONTENT_TAGS = frozenset({"script", "style", "template", "noscript", "textarea", "title", "object", "embed"})

DEFAULT_ALLOWED_ATTRIBUTES: dict[str, frozenset[str]] = {
    "*": frozenset({"class", "id", "title"}),
    "a": frozenset({"href", "rel"}),
    "img": frozenset({"src", "alt", "width", "height"}),
    "iframe": frozenset({"src", "width", "height", "allowfullscreen", "sandbox", "frameborder"}),
    "ol": frozenset({"start"}),
    "td": frozenset({"align", "style"}),
    "th": frozenset({"align", "style"}),
    "span": frozenset({"data-notation"}),
    "div": frozenset({"data-notation"}),
}

# Only this exact style value survives (table cell alignment)
ALLOWED_STYLE_PATTERN = r"^text-align:\s*(left|right|center);?$"

IFRAME_SANDBOX = "allow-scripts allow-same-origin allow-popups allow-presentation"

NARROW_NO_BREAK_SPACE = "\u202f"

# Quote filter: locale -> (left mark, right mark, inner space)
GUILLEMET_LOCALES: dict[str, tuple[str, str, str]] = {
    "en": ("\u00ab", "\u00bb", NARROW_NO_BREAK_SPACE),
    "fr": ("\u00ab", "\u00bb", NARROW_NO_BREAK_SPACE),
    "de": ("\u00bb", "\u00ab", NARROW_NO_BREAK_SPACE),
}

# Emoticon codes rendered as images. Codes must be whitespace-delimited.
DEFAULT_EMOTICONS: dict[str, str] = {
    ":)": "/static/smileys/smile.png",
    ":-)": "/static/smileys/smile.png",
    ":D": "/static/smileys/heureux.png",
    ";)": "/static/smileys/clin.png",
    ":(": "/static/smileys/triste.png",
    ":o": "/static/smileys/huh.png",
    ":p": "/static/smileys/langue.png",
    ":'(": "/static/smileys/pleure.png",
    ">_<": "/static/smileys/pinch.png",
    "X/": "/static/smileys/pinch.png",
    "^^": "/static/smileys/hihi.png",
    "o_O": "/static/smileys/blink.png",
    "^(;,;)^": "/static/smileys/cthulhu.png",
}

# Command line exit codes
EXIT_SUCCESS = 0
EXIT_RENDER_ERROR = 1
EXIT_INPUT_ERROR = 2
