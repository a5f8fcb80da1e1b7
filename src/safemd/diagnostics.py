#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/diagnostics.py
"""Non-fatal diagnostics collected during a render call.

Every downgrade the pipeline performs (a dangling footnote reference, a
stripped attribute, a mention that could not be confirmed) is recorded as a
:class:`Diagnostic` and returned next to the HTML in :class:`RenderResult`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from safemd.constants import SANITIZED_CONTENT, UNRESOLVED_REFERENCE, DiagnosticKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Diagnostic:
    """A single non-fatal message about the rendered document.

    Parameters
    ----------
    kind : {'unresolved-reference', 'sanitized-content'}
        Category of the downgrade
    message : str
        Human-readable description
    node_type : str or None, default = None
        AST node kind or HTML tag name the message is about
    detail : str or None, default = None
        The offending identifier, URL or attribute value

    """

    kind: DiagnosticKind
    message: str
    node_type: Optional[str] = None
    detail: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Return the diagnostic as a plain dictionary."""
        return {"kind": self.kind, "message": self.message, "node_type": self.node_type, "detail": self.detail}


@dataclass
class DiagnosticCollector:
    """Accumulates diagnostics for one render call.

    A collector is created per call and never shared, so passes can append to
    it without coordination.
    """

    messages: list[Diagnostic] = field(default_factory=list)

    def add(
        self, kind: DiagnosticKind, message: str, node_type: str | None = None, detail: str | None = None
    ) -> Diagnostic:
        diagnostic = Diagnostic(kind=kind, message=message, node_type=node_type, detail=detail)
        logger.debug("Diagnostic [%s]: %s", kind, message)
        self.messages.append(diagnostic)
        return diagnostic

    def unresolved(self, message: str, node_type: str | None = None, detail: str | None = None) -> Diagnostic:
        """Record an ``unresolved-reference`` diagnostic."""
        return self.add(UNRESOLVED_REFERENCE, message, node_type=node_type, detail=detail)

    def sanitized(self, message: str, node_type: str | None = None, detail: str | None = None) -> Diagnostic:
        """Record a ``sanitized-content`` diagnostic."""
        return self.add(SANITIZED_CONTENT, message, node_type=node_type, detail=detail)

    def __len__(self) -> int:
        return len(self.messages)


@dataclass(frozen=True)
class RenderResult:
    """Outcome of a successful render call.

    Parameters
    ----------
    contents : str
        Serialized, sanitized HTML
    messages : tuple of Diagnostic
        Non-fatal diagnostics in the order they were produced

    """

    contents: str
    messages: tuple[Diagnostic, ...] = ()

    def messages_of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [message for message in self.messages if message.kind == kind]
