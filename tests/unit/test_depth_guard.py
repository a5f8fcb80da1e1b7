"""Unit tests for the depth guard.

Tests cover depth measurement on hand-built trees, the inclusive limit
boundary, and the guard as seen through render().
"""

import pytest
from hypothesis import given, strategies as st

from safemd import ComplexityExceeded, render
from safemd.ast import BlockQuote, Document, Emphasis, List, ListItem, Paragraph, Text
from safemd.ast.guard import DepthGuard, check_depth, measure_depth


def nested_quotes(levels: int) -> Document:
    """Build a document with ``levels`` nested block quotes around one text leaf."""
    node = Paragraph(content=[Text(content="x")])
    for _ in range(levels):
        node = BlockQuote(children=[node])
    return Document(children=[node])


@pytest.mark.unit
class TestMeasureDepth:
    """Test measure_depth on hand-built trees."""

    def test_empty_document_has_depth_zero(self) -> None:
        """Test the root alone counts as depth 0."""
        assert measure_depth(Document()) == 0

    def test_paragraph_with_text(self) -> None:
        """Test a paragraph leaf sits two levels below the root."""
        doc = Document(children=[Paragraph(content=[Text(content="hi")])])
        assert measure_depth(doc) == 2

    def test_inline_nesting_counts(self) -> None:
        """Test inline containers add depth like block containers."""
        doc = Document(children=[Paragraph(content=[Emphasis(content=[Text(content="hi")])])])
        assert measure_depth(doc) == 3

    def test_list_items_count(self) -> None:
        """Test that list and list item both add a level."""
        doc = Document(
            children=[List(ordered=False, items=[ListItem(children=[Paragraph(content=[Text(content="a")])])])]
        )
        assert measure_depth(doc) == 4

    def test_deepest_branch_wins(self) -> None:
        """Test the maximum is taken over all branches."""
        doc = Document(
            children=[
                Paragraph(content=[Text(content="shallow")]),
                BlockQuote(children=[BlockQuote(children=[Paragraph(content=[Text(content="deep")])])]),
            ]
        )
        assert measure_depth(doc) == 4

    def test_stop_above_returns_early(self) -> None:
        """Test measurement stops at the first depth beyond stop_above."""
        assert measure_depth(nested_quotes(50), stop_above=3) == 4

    def test_very_deep_tree_does_not_recurse(self) -> None:
        """Test a tree far deeper than the recursion limit is measured."""
        assert measure_depth(nested_quotes(5000)) == 5002


@pytest.mark.unit
class TestCheckDepth:
    """Test the inclusive limit boundary."""

    def test_depth_equal_to_limit_passes(self) -> None:
        """Test a tree exactly at the limit is returned unchanged."""
        doc = nested_quotes(2)
        assert check_depth(doc, 4) is doc

    def test_depth_one_over_limit_raises(self) -> None:
        """Test a tree one level over the limit raises."""
        with pytest.raises(ComplexityExceeded) as exc_info:
            check_depth(nested_quotes(3), 4)
        assert exc_info.value.max_depth == 4
        assert exc_info.value.depth == 5

    def test_message_names_limit(self) -> None:
        """Test the error message names the configured limit."""
        with pytest.raises(ComplexityExceeded, match=r"tree depth > 4"):
            check_depth(nested_quotes(10), 4)

    def test_depth_guard_object(self) -> None:
        """Test DepthGuard applies its bound limit."""
        guard = DepthGuard(3)
        guard.check(nested_quotes(1))
        with pytest.raises(ComplexityExceeded):
            guard.check(nested_quotes(2))

    @given(levels=st.integers(min_value=0, max_value=60), limit=st.integers(min_value=1, max_value=64))
    def test_raises_exactly_when_deeper_than_limit(self, levels: int, limit: int) -> None:
        """Property: check_depth raises if and only if depth exceeds the limit."""
        doc = nested_quotes(levels)
        depth = levels + 2
        if depth > limit:
            with pytest.raises(ComplexityExceeded):
                check_depth(doc, limit)
        else:
            assert check_depth(doc, limit) is doc


@pytest.mark.unit
class TestRenderDepthLimit:
    """Test the guard through the public render call."""

    def test_nested_quotes_at_limit_render(self) -> None:
        """Test two nested quotes fit a limit of four."""
        result = render("> > x", {"limitDepth": 4})
        assert "<blockquote>" in result.contents

    def test_nested_quotes_over_limit_raise(self) -> None:
        """Test three nested quotes exceed a limit of four."""
        with pytest.raises(ComplexityExceeded):
            render("> > > x", {"limitDepth": 4})

    def test_deep_list_nesting_raises(self) -> None:
        """Test deeply indented lists are rejected rather than rendered."""
        text = "\n".join("  " * i + "- item" for i in range(40))
        with pytest.raises(ComplexityExceeded):
            render(text, {"limitDepth": 10})

    def test_default_limit_rejects_pathological_quotes(self) -> None:
        """Test the default limit rejects hundreds of nested quotes."""
        with pytest.raises(ComplexityExceeded):
            render(">" * 300 + " x")
