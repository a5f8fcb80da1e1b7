"""Unit tests for the HTML sanitizer.

Tests cover tag and attribute allow-lists, URL scheme checks, iframe
handling, diagnostics, and idempotence of the sanitizer on its own output.
"""

import pytest
from bs4 import BeautifulSoup
from hypothesis import HealthCheck, given, settings, strategies as st
from utils import assert_html_safe, soup_of

from safemd.constants import DEFAULT_ALLOWED_TAGS, IFRAME_SANDBOX, SAFE_URL_SCHEMES
from safemd.diagnostics import DiagnosticCollector
from safemd.html.sanitizer import Sanitizer, _as_text, sanitize_tree
from safemd.options import SanitizerPolicy


def clean(markup: str, policy: SanitizerPolicy = None):
    """Sanitize markup, returning the HTML and the diagnostics."""
    diagnostics = DiagnosticCollector()
    html = Sanitizer(policy, diagnostics).sanitize_html(markup)
    return html, diagnostics


@pytest.mark.unit
@pytest.mark.security
class TestTags:
    """Test tag allow-listing."""

    def test_allowed_markup_untouched(self) -> None:
        """Test allowed markup passes without diagnostics."""
        html, diagnostics = clean('<p>Hi <strong>there</strong> <a href="https://example.com">link</a></p>')
        assert html == '<p>Hi <strong>there</strong> <a href="https://example.com">link</a></p>'
        assert len(diagnostics) == 0

    def test_script_removed_with_content(self) -> None:
        """Test script elements disappear together with their text."""
        html, diagnostics = clean("<p>a<script>alert(1)</script>b</p>")
        assert html == "<p>ab</p>"
        assert diagnostics.messages[0].node_type == "script"
        assert diagnostics.messages[0].kind == "sanitized-content"

    def test_style_element_removed(self) -> None:
        """Test style elements disappear together with their text."""
        html, _ = clean("<style>p { color: red }</style><p>x</p>")
        assert html == "<p>x</p>"

    def test_disallowed_tag_unwrapped(self) -> None:
        """Test a disallowed tag is replaced by its children."""
        html, diagnostics = clean("<marquee><b>hi</b></marquee>")
        assert html == "<b>hi</b>"
        assert diagnostics.messages[0].node_type == "marquee"

    def test_nested_disallowed_tags_unwrapped(self) -> None:
        """Test nested disallowed tags all unwrap, leaving their text."""
        html, diagnostics = clean('<font color="red"><center>x</center></font>')
        assert html == "x"
        assert len(diagnostics) == 2

    def test_script_inside_disallowed_tag_removed(self) -> None:
        """Test dropped content is found inside unwrapped tags."""
        html, _ = clean("<form><script>alert(1)</script>ok</form>")
        assert html == "ok"

    def test_comment_removed(self) -> None:
        """Test HTML comments are removed."""
        html, diagnostics = clean("a<!-- secret -->b")
        assert html == "ab"
        assert diagnostics.messages[0].node_type == "comment"

    def test_processing_instruction_removed(self) -> None:
        """Test processing instructions are removed."""
        html, _ = clean("<?php echo 1; ?>text")
        assert html == "text"

    def test_custom_allowed_tag(self) -> None:
        """Test a policy can allow extra tags."""
        policy = SanitizerPolicy(allowed_tags=DEFAULT_ALLOWED_TAGS | {"mark"})
        html, diagnostics = clean("<mark>hi</mark>", policy)
        assert html == "<mark>hi</mark>"
        assert len(diagnostics) == 0


@pytest.mark.unit
@pytest.mark.security
class TestAttributes:
    """Test attribute and URL allow-listing."""

    def test_event_handler_dropped(self) -> None:
        """Test on* attributes are removed."""
        html, diagnostics = clean('<img src="x.png" onerror="alert(1)">')
        assert html == '<img src="x.png"/>'
        assert diagnostics.messages[0].detail == "alert(1)"

    def test_javascript_href_dropped(self) -> None:
        """Test javascript: URLs are removed from links."""
        html, diagnostics = clean('<a href="javascript:alert(1)">x</a>')
        assert html == "<a>x</a>"
        assert "unsafe URL" in diagnostics.messages[0].message

    @pytest.mark.parametrize(
        "url",
        [
            "JavaScript:alert(1)",
            " javascript:alert(1)",
            "java\tscript:alert(1)",
            "&#106;avascript:alert(1)",
            "data:text/html;base64,PHNjcmlwdD4=",
            "vbscript:msgbox(1)",
        ],
    )
    def test_dangerous_urls_dropped(self, url: str) -> None:
        """Test obfuscated and dangerous schemes are rejected."""
        html, _ = clean(f'<a href="{url}">x</a>')
        assert html == "<a>x</a>"

    @pytest.mark.parametrize("url", ["https://example.com", "/relative", "#anchor", "mailto:me@example.com", "./a:b"])
    def test_safe_urls_kept(self, url: str) -> None:
        """Test allowed schemes and relative URLs survive."""
        html, diagnostics = clean(f'<a href="{url}">x</a>')
        assert soup_of(html).a["href"] == url
        assert len(diagnostics) == 0

    def test_custom_url_scheme(self) -> None:
        """Test a policy can accept extra schemes."""
        policy = SanitizerPolicy(url_schemes=SAFE_URL_SCHEMES | {"ftp"})
        html, _ = clean('<a href="ftp://example.com/f">x</a>', policy)
        assert soup_of(html).a["href"] == "ftp://example.com/f"

    def test_cell_alignment_style_kept(self) -> None:
        """Test the alignment style survives on table cells and other styles do not."""
        html, diagnostics = clean(
            '<table><tr><td style="text-align: right">1</td><td style="color: red">2</td></tr></table>'
        )
        cells = soup_of(html).find_all("td")
        assert cells[0]["style"] == "text-align: right"
        assert "style" not in cells[1].attrs
        assert len(diagnostics) == 1

    def test_style_on_paragraph_dropped(self) -> None:
        """Test style is not allowed outside table cells."""
        html, _ = clean('<p style="text-align: left">x</p>')
        assert html == "<p>x</p>"

    def test_global_attributes_kept(self) -> None:
        """Test class, id and title are allowed everywhere."""
        html, diagnostics = clean('<abbr title="HyperText" class="x" id="y">HTML</abbr>')
        tag = soup_of(html).abbr
        assert tag["title"] == "HyperText"
        assert tag["class"] == ["x"]
        assert len(diagnostics) == 0


@pytest.mark.unit
@pytest.mark.security
class TestIframes:
    """Test iframe handling."""

    def test_trusted_iframe_gets_sandbox(self) -> None:
        """Test a trusted iframe is kept and sandboxed."""
        html, diagnostics = clean('<iframe src="https://www.youtube.com/embed/abc"></iframe>')
        iframe = soup_of(html).iframe
        assert iframe["src"] == "https://www.youtube.com/embed/abc"
        assert _as_text(iframe["sandbox"]) == IFRAME_SANDBOX
        assert [m.message for m in diagnostics.messages] == ["Forced sandbox on embedded iframe"]

    def test_trusted_iframe_loses_fallback_content(self) -> None:
        """Test content inside a trusted iframe is removed."""
        html, _ = clean(
            f'<iframe src="https://player.vimeo.com/video/1" sandbox="{IFRAME_SANDBOX}">fallback</iframe>'
        )
        assert soup_of(html).iframe.contents == []

    def test_trusted_iframe_attributes_filtered(self) -> None:
        """Test disallowed attributes are removed from trusted iframes."""
        html, _ = clean(f'<iframe src="https://player.vimeo.com/video/1" sandbox="{IFRAME_SANDBOX}" onload="x()">')
        assert "onload" not in soup_of(html).iframe.attrs

    def test_untrusted_iframe_becomes_link(self) -> None:
        """Test an iframe from an unknown host is replaced by a link."""
        html, diagnostics = clean('<iframe src="https://evil.example/x"></iframe>')
        soup = soup_of(html)
        assert soup.iframe is None
        assert soup.a["href"] == "https://evil.example/x"
        assert soup.a.get_text() == "https://evil.example/x"
        assert diagnostics.messages[0].detail == "https://evil.example/x"

    def test_trusted_host_wrong_path_is_untrusted(self) -> None:
        """Test a trusted host outside the player path is not trusted."""
        html, _ = clean('<iframe src="https://www.youtube.com/redirect?q=x"></iframe>')
        assert soup_of(html).iframe is None

    def test_http_player_url_is_untrusted(self) -> None:
        """Test trusted players must be loaded over HTTPS."""
        html, _ = clean('<iframe src="http://www.youtube.com/embed/abc"></iframe>')
        assert soup_of(html).iframe is None

    def test_javascript_iframe_removed(self) -> None:
        """Test an iframe with an unsafe source is removed outright."""
        html, _ = clean('<p>a<iframe src="javascript:alert(1)"></iframe>b</p>')
        assert html == "<p>ab</p>"


@pytest.mark.unit
class TestSanitizerHelpers:
    """Test module-level helpers."""

    def test_as_text_flattens_lists(self) -> None:
        """Test multi-valued attributes are joined with spaces."""
        assert _as_text(["a", "b"]) == "a b"
        assert _as_text(None) == ""
        assert _as_text("x") == "x"

    def test_sanitize_tree_in_place(self) -> None:
        """Test sanitize_tree cleans and returns the same object."""
        soup = BeautifulSoup("<p onclick='x'>hi</p>", "html.parser")
        assert sanitize_tree(soup) is soup
        assert str(soup) == "<p>hi</p>"

    def test_sanitize_tag_keeps_root(self) -> None:
        """Test the root tag itself is never removed even if disallowed."""
        soup = BeautifulSoup("<section><marquee>x</marquee></section>", "html.parser")
        Sanitizer().sanitize(soup.section)
        assert str(soup) == "<section>x</section>"


HTML_FRAGMENTS = [
    "<p>",
    "</p>",
    "<b>",
    "</b>",
    "<em>",
    "</em>",
    "<div>",
    "</div>",
    "<a href='javascript:alert(1)'>",
    '<a href="https://example.com">',
    "</a>",
    "<img src=x onerror=alert(1)>",
    '<img src="data:image/png;base64,AAAA">',
    "<script>alert(1)</script>",
    "<style>p{}</style>",
    "<!-- c -->",
    "<?pi x?>",
    '<iframe src="https://evil.example/x"></iframe>',
    '<iframe src="https://www.youtube.com/embed/abc">fallback</iframe>',
    '<td style="text-align: left">',
    '<td style="color: red">',
    "</td>",
    "<foo bar=1>",
    "</foo>",
    "<svg><circle/></svg>",
    "<br>",
    "&amp;",
    "&lt;",
    "text",
    " ",
    "<",
    ">",
    '"',
]


@pytest.mark.unit
@pytest.mark.fuzzing
@pytest.mark.security
class TestSanitizerProperties:
    """Property-based tests over generated HTML."""

    @given(st.lists(st.sampled_from(HTML_FRAGMENTS), max_size=30).map("".join))
    @settings(suppress_health_check=[HealthCheck.too_slow])
    def test_idempotent(self, markup: str) -> None:
        """Property: sanitizing sanitized output changes nothing and reports nothing."""
        once, _ = clean(markup)
        twice, diagnostics = clean(once)
        assert twice == once
        assert len(diagnostics) == 0

    @given(st.lists(st.sampled_from(HTML_FRAGMENTS), max_size=30).map("".join))
    @settings(suppress_health_check=[HealthCheck.too_slow])
    def test_output_is_safe(self, markup: str) -> None:
        """Property: no script vectors survive sanitization."""
        html, _ = clean(markup)
        assert_html_safe(html)

    @given(st.text(max_size=200))
    @settings(suppress_health_check=[HealthCheck.too_slow])
    def test_arbitrary_text_does_not_crash(self, markup: str) -> None:
        """Property: arbitrary input is sanitized without raising."""
        html, _ = clean(markup)
        assert isinstance(html, str)
