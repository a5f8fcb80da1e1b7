"""Unit tests for the markdown to AST converter.

Tests cover the mapping from mistune tokens onto AST nodes for the base
grammar and the bundled extensions.
"""

import pytest

from safemd import ParseError, RenderOptions
from safemd.ast import (
    BlockQuote,
    Code,
    CodeBlock,
    Embed,
    Emphasis,
    FootnoteDefinition,
    FootnoteReference,
    Heading,
    Html,
    Image,
    LineBreak,
    Link,
    List,
    Math,
    Mention,
    Paragraph,
    Strikethrough,
    Strong,
    Table,
    Text,
    ThematicBreak,
)
from safemd.parser import MarkdownToAstConverter, markdown_to_ast


def first_block(markdown: str, options: RenderOptions = None):
    """Parse markdown and return the first top-level node."""
    return markdown_to_ast(markdown, options).children[0]


@pytest.mark.unit
class TestBlockTokens:
    """Test block-level token conversion."""

    def test_heading(self) -> None:
        """Test an ATX heading keeps its level and inline content."""
        node = first_block("## Title *here*")
        assert isinstance(node, Heading)
        assert node.level == 2
        assert isinstance(node.content[0], Text)
        assert isinstance(node.content[1], Emphasis)

    def test_setext_heading(self) -> None:
        """Test setext underlines produce headings."""
        node = first_block("Title\n=====")
        assert isinstance(node, Heading)
        assert node.level == 1

    def test_fenced_code_with_language(self) -> None:
        """Test fenced code keeps the language and raw content."""
        node = first_block("```python\nprint(1)\n```")
        assert isinstance(node, CodeBlock)
        assert node.language == "python"
        assert node.content == "print(1)\n"
        assert node.metadata["info_string"] == "python"

    def test_fenced_code_info_attributes(self) -> None:
        """Test text after the language is kept as metadata."""
        node = first_block("```python {linenos}\nx\n```")
        assert node.language == "python"
        assert node.metadata["info_attrs"] == "{linenos}"

    def test_unsafe_language_identifier_dropped(self) -> None:
        """Test an identifier with markup characters is discarded."""
        node = first_block('```"><script>\nx\n```')
        assert node.language is None

    def test_indented_code(self) -> None:
        """Test indented code has no language."""
        node = first_block("    x = 1\n")
        assert isinstance(node, CodeBlock)
        assert node.language is None

    def test_block_quote(self) -> None:
        """Test block quotes wrap their block content."""
        node = first_block("> quoted")
        assert isinstance(node, BlockQuote)
        assert isinstance(node.children[0], Paragraph)

    def test_unordered_list(self) -> None:
        """Test a tight bullet list."""
        node = first_block("- a\n- b")
        assert isinstance(node, List)
        assert not node.ordered
        assert node.tight
        assert len(node.items) == 2
        assert isinstance(node.items[0].children[0], Paragraph)

    def test_ordered_list_start(self) -> None:
        """Test an ordered list keeps its start number."""
        node = first_block("3. a\n4. b")
        assert node.ordered
        assert node.start == 3

    def test_loose_list(self) -> None:
        """Test blank lines between items make the list loose."""
        node = first_block("- a\n\n- b")
        assert not node.tight

    def test_table(self) -> None:
        """Test tables keep header, rows and alignment."""
        node = first_block("| a | b |\n|:--|--:|\n| 1 | 2 |")
        assert isinstance(node, Table)
        assert [c.content[0].content for c in node.header.cells] == ["a", "b"]
        assert node.alignments == ["left", "right"]
        assert len(node.rows) == 1
        assert node.rows[0].cells[1].content[0].content == "2"

    def test_table_row_with_extra_cells_truncated(self) -> None:
        """Test a body row wider than the header keeps the table and drops the excess."""
        node = first_block("| a | b |\n|---|---|\n| 1 | 2 | 3 |")
        assert isinstance(node, Table)
        assert len(node.rows) == 1
        assert [cell.content[0].content for cell in node.rows[0].cells] == ["1", "2"]

    def test_table_short_row_padded(self) -> None:
        """Test a body row narrower than the header gets empty cells."""
        node = first_block("| a | b | c |\n|---|---|---|\n| 1 |")
        assert isinstance(node, Table)
        cells = node.rows[0].cells
        assert len(cells) == 3
        assert cells[1].content == []
        assert cells[2].content == []

    def test_table_escaped_pipe_stays_in_cell(self) -> None:
        """Test ``\\|`` does not split a cell."""
        node = first_block("| a | b |\n|---|---|\n| x \\| y | z |")
        cells = node.rows[0].cells
        assert len(cells) == 2
        assert "".join(part.content for part in cells[0].content) == "x | y"

    def test_table_header_delimiter_mismatch_is_paragraph(self) -> None:
        """Test a delimiter row with a different width does not start a table."""
        assert isinstance(first_block("| a | b |\n|---|\n| 1 | 2 |"), Paragraph)

    def test_thematic_break(self) -> None:
        """Test a horizontal rule."""
        assert isinstance(first_block("---"), ThematicBreak)

    def test_block_html(self) -> None:
        """Test block-level HTML is kept raw for the sanitizer."""
        node = first_block("<div>hi</div>")
        assert isinstance(node, Html)
        assert not node.inline
        assert "<div>hi</div>" in node.content

    def test_block_math(self) -> None:
        """Test a display formula."""
        node = first_block("$$\n\\frac{a}{b}\n$$")
        assert isinstance(node, Math)
        assert not node.inline
        assert node.content == "\\frac{a}{b}"

    def test_single_line_block_math(self) -> None:
        """Test a display formula on one line."""
        node = first_block("$$x+y$$")
        assert isinstance(node, Math)
        assert node.content == "x+y"

    def test_embed(self) -> None:
        """Test the embed block keeps the URL unresolved."""
        node = first_block("!(https://vimeo.com/12345)")
        assert isinstance(node, Embed)
        assert node.url == "https://vimeo.com/12345"
        assert node.src is None

    def test_footnote_definition(self) -> None:
        """Test footnote definitions parse their block content."""
        doc = markdown_to_ast("text[^n]\n\n[^n]: Note *body*\n    continued")
        definition = doc.children[1]
        assert isinstance(definition, FootnoteDefinition)
        assert definition.identifier == "n"
        paragraph = definition.content[0]
        assert isinstance(paragraph, Paragraph)
        assert isinstance(paragraph.content[1], Emphasis)

    def test_empty_input(self) -> None:
        """Test empty input gives an empty document."""
        assert markdown_to_ast("").children == []


@pytest.mark.unit
class TestInlineTokens:
    """Test inline token conversion."""

    def test_emphasis_and_strong(self) -> None:
        """Test emphasis and strong emphasis nodes."""
        content = first_block("*a* **b**").content
        assert isinstance(content[0], Emphasis)
        assert isinstance(content[2], Strong)

    def test_strikethrough(self) -> None:
        """Test strikethrough nodes."""
        assert isinstance(first_block("~~gone~~").content[0], Strikethrough)

    def test_code_span(self) -> None:
        """Test code spans keep their raw text."""
        node = first_block("`a < b`").content[0]
        assert isinstance(node, Code)
        assert node.content == "a < b"

    def test_link_with_title(self) -> None:
        """Test links keep URL and title and are not autolinks."""
        link = first_block('[text](https://example.com "T")').content[0]
        assert isinstance(link, Link)
        assert link.url == "https://example.com"
        assert link.title == "T"
        assert "autolink" not in link.metadata

    def test_autolink(self) -> None:
        """Test angle-bracket autolinks are marked."""
        link = first_block("<https://example.com>").content[0]
        assert isinstance(link, Link)
        assert link.metadata["autolink"] is True

    def test_image_alt_flattened(self) -> None:
        """Test image alt text is the plain text of its description."""
        image = first_block("![a *b* c](x.png)").content[0]
        assert isinstance(image, Image)
        assert image.alt_text == "a b c"
        assert image.url == "x.png"

    def test_hard_line_break(self) -> None:
        """Test two trailing spaces make a hard break."""
        content = first_block("a  \nb").content
        assert isinstance(content[1], LineBreak)

    def test_soft_break_merges_into_text(self) -> None:
        """Test soft breaks merge into the surrounding text."""
        content = first_block("a\nb").content
        assert content == [Text(content="a\nb")]

    def test_entities_decoded(self) -> None:
        """Test character references become characters in text nodes."""
        assert first_block("a &amp; b &lt;c&gt;").content == [Text(content="a & b <c>")]

    def test_escaped_characters_stay_literal(self) -> None:
        """Test backslash escapes produce literal text."""
        assert first_block("\\*not\\*").content == [Text(content="*not*")]

    def test_escaped_ampersand_is_not_decoded(self) -> None:
        """Test an escaped ampersand keeps the following entity name literal."""
        assert first_block("\\&amp;").content == [Text(content="&amp;")]

    def test_inline_html(self) -> None:
        """Test inline HTML is kept raw."""
        content = first_block("a <abbr>b</abbr>").content
        assert isinstance(content[1], Html)
        assert content[1].inline

    def test_inline_math(self) -> None:
        """Test inline formulas."""
        node = first_block("$x^2$").content[0]
        assert isinstance(node, Math)
        assert node.inline
        assert node.content == "x^2"

    def test_dollar_amounts_are_not_math(self) -> None:
        """Test a closing dollar followed by a digit does not close a formula."""
        content = first_block("costs $5 and $10")
        assert all(isinstance(node, Text) for node in content.content)

    def test_code_span_wins_over_math(self) -> None:
        """Test a formula cannot close inside a code span that starts within it."""
        content = first_block("$\\alpha`$` foo").content
        assert not any(isinstance(node, Math) for node in content)
        codes = [node for node in content if isinstance(node, Code)]
        assert len(codes) == 1
        assert codes[0].content == "$"

    def test_footnote_reference(self) -> None:
        """Test footnote references keep their source text."""
        ref = first_block("a[^x]").content[1]
        assert isinstance(ref, FootnoteReference)
        assert ref.identifier == "x"
        assert ref.metadata["raw"] == "[^x]"

    def test_footnote_label_with_spaces(self) -> None:
        """Test a label containing spaces is still a footnote reference."""
        doc = markdown_to_ast("x[^my note]\n\n[^my note]: hi")
        assert isinstance(doc.children[0].content[1], FootnoteReference)
        assert isinstance(doc.children[1], FootnoteDefinition)

    def test_footnote_marker_is_never_a_link_definition(self) -> None:
        """Test ``[^label]: url`` stays paragraph text once footnotes are off."""
        options = RenderOptions(disable_tokenizers=("footnotes",))
        doc = markdown_to_ast("x[^a]\n\n[^a]: hi", options)
        assert len(doc.children) == 2
        assert all(isinstance(block, Paragraph) for block in doc.children)
        assert not any(isinstance(node, Link) for node in doc.children[0].content)

    def test_emoticon(self) -> None:
        """Test whitespace-delimited emoticons become marked images."""
        node = first_block("hi :)").content[1]
        assert isinstance(node, Image)
        assert node.alt_text == ":)"
        assert node.metadata["emoticon"] is True

    def test_emoticon_inside_word_is_text(self) -> None:
        """Test emoticon codes glued to other characters stay text."""
        assert first_block("f(x:)").content == [Text(content="f(x:)")]


@pytest.mark.unit
class TestMentions:
    """Test mention tokens and their activation."""

    def test_mentions_ignored_without_resolver(self) -> None:
        """Test @name stays text when no resolver is configured."""
        assert first_block("hi @alice").content == [Text(content="hi @alice")]

    def test_short_mention(self) -> None:
        """Test @name with a resolver configured."""
        options = RenderOptions(mention_resolver=lambda name: True)
        node = first_block("hi @alice", options).content[1]
        assert isinstance(node, Mention)
        assert node.name == "alice"
        assert node.raw == "@alice"

    def test_long_mention(self) -> None:
        """Test @**long name** mentions."""
        options = RenderOptions(mention_resolver=lambda name: True)
        node = first_block("hi @**Jane Doe**", options).content[1]
        assert node.name == "Jane Doe"

    def test_email_is_not_a_mention(self) -> None:
        """Test an address does not produce a mention."""
        options = RenderOptions(mention_resolver=lambda name: True)
        content = first_block("mail me at me@example.com", options).content
        assert not any(isinstance(node, Mention) for node in content)


@pytest.mark.unit
class TestParserErrors:
    """Test error handling in the converter."""

    def test_non_string_input(self) -> None:
        """Test bytes input raises ParseError."""
        with pytest.raises(ParseError):
            MarkdownToAstConverter().parse(b"# bytes")

    def test_null_bytes_removed(self) -> None:
        """Test NUL and zero-width characters are stripped before parsing."""
        assert first_block("a\x00b\u200bc").content == [Text(content="abc")]
