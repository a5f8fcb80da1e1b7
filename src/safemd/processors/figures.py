#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/safemd/processors/figures.py
"""Promote standalone images to figures.

A paragraph holding nothing but one image with alt text becomes a
``Figure``. A caption may be given with a ``Figure:`` marker, either as the
paragraph right after the image or on the line right below it:

    ![A cat](cat.png)
    Figure: The office cat

With a caption the figure is created even when the alt text is empty.
"""

from __future__ import annotations

import logging
from typing import Optional

from safemd.ast.nodes import Figure, Image, LineBreak, Node, Paragraph, Text
from safemd.ast.transforms import NodeTransformer
from safemd.constants import FIGURE_CAPTION_MARKER

logger = logging.getLogger(__name__)


def _is_figure_image(node: Node) -> bool:
    return isinstance(node, Image) and not node.metadata.get("emoticon")


def _strip_marker(content: list[Node], marker: str) -> Optional[list[Node]]:
    """Return the caption following ``marker`` at the start of ``content``, or None."""
    if not content or not isinstance(content[0], Text):
        return None
    text = content[0].content.lstrip()
    if not text.startswith(marker):
        return None

    remainder = text[len(marker) :].lstrip()
    caption: list[Node] = [Text(content=remainder)] if remainder else []
    return caption + list(content[1:])


def caption_of(paragraph: Node, marker: str = FIGURE_CAPTION_MARKER) -> Optional[list[Node]]:
    """Return the caption nodes of a caption-marker paragraph, or None if it is not one."""
    if not isinstance(paragraph, Paragraph):
        return None
    return _strip_marker(paragraph.content, marker)


def _inline_caption(paragraph: Paragraph, marker: str) -> Optional[tuple[Image, list[Node]]]:
    """Split ``![alt](src)`` followed by a marker line in the same paragraph."""
    content = paragraph.content
    if len(content) < 2 or not _is_figure_image(content[0]):
        return None

    rest = list(content[1:])
    if isinstance(rest[0], LineBreak):
        rest = rest[1:]
    elif not (isinstance(rest[0], Text) and rest[0].content.lstrip(" \t").startswith("\n")):
        return None

    caption = _strip_marker(rest, marker)
    if caption is None:
        return None
    return content[0], caption  # type: ignore[return-value]


class FigurePromoter(NodeTransformer):
    """Turn solitary image paragraphs into figures.

    Parameters
    ----------
    marker : str, default "Figure:"
        Prefix identifying a caption paragraph

    """

    def __init__(self, marker: str = FIGURE_CAPTION_MARKER):
        self.marker = marker
        self.promoted = 0

    def _transform_children(self, children: list[Node]) -> list[Node]:
        return self._promote(super()._transform_children(children))

    def _promote(self, siblings: list[Node]) -> list[Node]:
        result: list[Node] = []
        position = 0
        while position < len(siblings):
            node = siblings[position]
            position += 1
            if not isinstance(node, Paragraph):
                result.append(node)
                continue

            inline = _inline_caption(node, self.marker)
            if inline is not None:
                image, caption = inline
                result.append(Figure(image=image, caption=caption, metadata=node.metadata.copy()))
                self.promoted += 1
                continue

            if len(node.content) != 1 or not _is_figure_image(node.content[0]):
                result.append(node)
                continue

            image = node.content[0]
            # Only the paragraph right after the image may hold its caption
            following = siblings[position] if position < len(siblings) else None
            caption = caption_of(following, self.marker) if following is not None else None
            if caption is not None:
                position += 1
                result.append(Figure(image=image, caption=caption, metadata=node.metadata.copy()))  # type: ignore[arg-type]
                self.promoted += 1
            elif image.alt_text.strip():  # type: ignore[attr-defined]
                result.append(Figure(image=image, caption=None, metadata=node.metadata.copy()))  # type: ignore[arg-type]
                self.promoted += 1
            else:
                result.append(node)

        return result

    def process(self, document: Node) -> Node:
        """Return ``document`` with eligible image paragraphs promoted."""
        result = self.transform(document)
        logger.debug("Promoted %d images to figures", self.promoted)
        return result  # type: ignore[return-value]
