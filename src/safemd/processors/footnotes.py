#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/processors/footnotes.py
"""Footnote collection and reordering.

Footnote numbers follow the order in which references appear in the text,
never the order in which definitions were written. The reorderer works in
three steps:

1. Every ``FootnoteDefinition`` is lifted out of its source position and
   indexed by its normalized identifier (first definition wins).
2. The document body is walked depth-first, left to right. The first
   reference to an identifier assigns it the next index; later references
   reuse that index with an increasing ``occurrence``.
3. The definitions are walked in index order, so references that only occur
   inside a footnote are numbered after everything in the body.

References without a definition are turned back into their literal
``[^id]`` text and definitions nobody references are dropped; both are
reported as ``unresolved-reference`` diagnostics.

Examples
--------
>>> doc = markdown_to_ast("c[^c] b[^b] a[^a]\\n\\n[^a]: A\\n[^b]: B\\n[^c]: C")
>>> doc = FootnoteReorderer(DiagnosticCollector()).process(doc)
>>> [(f.identifier, f.index) for f in doc.footnotes]
[('c', 1), ('b', 2), ('a', 3)]

"""

from __future__ import annotations

import logging
from typing import Optional

from safemd.ast.nodes import Document, FootnoteDefinition, FootnoteReference, Node, Text
from safemd.ast.transforms import NodeTransformer
from safemd.diagnostics import DiagnosticCollector

logger = logging.getLogger(__name__)


def normalize_footnote_identifier(identifier: str) -> str:
    """Normalize a footnote label for matching.

    Labels match case-insensitively and runs of whitespace count as a single
    space.

    >>> normalize_footnote_identifier("  My  Note ")
    'my note'

    """
    return " ".join(identifier.split()).lower()


class _DefinitionCollector(NodeTransformer):
    """Remove footnote definitions from the tree, recording them by identifier."""

    def __init__(self, diagnostics: DiagnosticCollector):
        self.diagnostics = diagnostics
        self.definitions: dict[str, FootnoteDefinition] = {}

    def record(self, node: FootnoteDefinition) -> None:
        # Definitions nested in this one are lifted out as well
        content = self._transform_children(node.content)
        key = normalize_footnote_identifier(node.identifier)
        if key in self.definitions:
            self.diagnostics.unresolved(
                f"Duplicate footnote definition ignored: [^{node.identifier}]",
                node_type="FootnoteDefinition",
                detail=node.identifier,
            )
            return
        self.definitions[key] = FootnoteDefinition(
            identifier=key,
            content=content,
            metadata={**node.metadata, "label": node.identifier},
            source_location=node.source_location,
        )

    def visit_footnote_definition(self, node: FootnoteDefinition) -> None:  # type: ignore[override]
        self.record(node)
        return None


class _ReferenceNumberer(NodeTransformer):
    """Assign indices to footnote references in traversal order."""

    def __init__(self, definitions: dict[str, FootnoteDefinition], diagnostics: DiagnosticCollector):
        self.definitions = definitions
        self.diagnostics = diagnostics
        self.order: list[str] = []
        self._indices: dict[str, int] = {}
        self._occurrences: dict[str, int] = {}

    def visit_footnote_reference(self, node: FootnoteReference) -> Node:  # type: ignore[override]
        key = normalize_footnote_identifier(node.identifier)
        if key not in self.definitions:
            literal = node.metadata.get("raw") or f"[^{node.identifier}]"
            self.diagnostics.unresolved(
                f"Footnote reference has no definition: {literal}",
                node_type="FootnoteReference",
                detail=node.identifier,
            )
            return Text(content=literal)

        index = self._indices.get(key)
        if index is None:
            self.order.append(key)
            index = self._indices[key] = len(self.order)
        occurrence = self._occurrences.get(key, 0) + 1
        self._occurrences[key] = occurrence

        return FootnoteReference(
            identifier=key,
            index=index,
            occurrence=occurrence,
            metadata=node.metadata.copy(),
            source_location=node.source_location,
        )


class FootnoteReorderer:
    """Number footnotes by first reference and move definitions to the end.

    Parameters
    ----------
    diagnostics : DiagnosticCollector
        Receives ``unresolved-reference`` diagnostics

    """

    def __init__(self, diagnostics: DiagnosticCollector):
        self.diagnostics = diagnostics

    def process(self, document: Document) -> Document:
        """Return a new document with numbered references and ordered footnotes.

        Parameters
        ----------
        document : Document
            Parsed document; definitions may appear anywhere in the body

        Returns
        -------
        Document
            Document whose ``footnotes`` holds the referenced definitions,
            sorted by index

        """
        collector = _DefinitionCollector(self.diagnostics)
        body = collector._transform_children(document.children)
        for definition in document.footnotes:
            collector.record(definition)

        numberer = _ReferenceNumberer(collector.definitions, self.diagnostics)
        body = numberer._transform_children(body)

        footnotes: list[FootnoteDefinition] = []
        position = 0
        # The order list grows while definitions are processed
        while position < len(numberer.order):
            key = numberer.order[position]
            position += 1
            definition = collector.definitions[key]
            footnotes.append(
                FootnoteDefinition(
                    identifier=key,
                    content=numberer._transform_children(definition.content),
                    index=position,
                    metadata=definition.metadata,
                    source_location=definition.source_location,
                )
            )

        for key, definition in collector.definitions.items():
            if key not in numberer._indices:
                label = definition.metadata.get("label", key)
                self.diagnostics.unresolved(
                    f"Footnote definition is never referenced: [^{label}]",
                    node_type="FootnoteDefinition",
                    detail=label,
                )

        logger.debug("Numbered %d footnotes", len(footnotes))
        return Document(
            children=body,
            footnotes=footnotes,
            metadata=document.metadata.copy(),
            source_location=document.source_location,
        )


def reorder_footnotes(document: Document, diagnostics: Optional[DiagnosticCollector] = None) -> Document:
    """Number footnotes of ``document`` by first reference."""
    return FootnoteReorderer(diagnostics if diagnostics is not None else DiagnosticCollector()).process(document)
