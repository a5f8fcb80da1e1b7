"""Tests for the safemd command-line interface."""

import io
import json
import logging

import pytest

from safemd.cli import _build_options, create_parser, main
from safemd.constants import EXIT_INPUT_ERROR, EXIT_RENDER_ERROR, EXIT_SUCCESS
from safemd.utils.network import fetch_oembed


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo the handler changes main() makes to the root logger."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.cli
class TestParser:
    """Test argument parsing."""

    def test_defaults(self) -> None:
        """Test default argument values."""
        args = create_parser().parse_args([])
        assert args.input == "-"
        assert args.limit_depth == 100
        assert args.disable == []
        assert not args.json

    def test_repeatable_disable(self) -> None:
        """Test --disable may be given several times."""
        args = create_parser().parse_args(["--disable", "math", "--disable", "embed"])
        assert args.disable == ["math", "embed"]

    @pytest.mark.parametrize("value", ["0", "129", "ten"])
    def test_limit_depth_rejected(self, value: str) -> None:
        """Test out-of-range and non-numeric depths exit with usage error."""
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["--limit-depth", value])
        assert exc_info.value.code == 2

    def test_build_options(self) -> None:
        """Test flags map onto RenderOptions fields."""
        args = create_parser().parse_args(["--no-quotes", "--no-highlight", "--fetch-embeds", "--locale", "fr"])
        options = _build_options(args)
        assert options.quote_filter is None
        assert options.highlight is False
        assert options.embed_fetcher is fetch_oembed
        assert options.locale == "fr"

    def test_embeds_not_fetched_by_default(self) -> None:
        """Test the network fetcher is opt-in."""
        assert _build_options(create_parser().parse_args([])).embed_fetcher is None


@pytest.mark.cli
class TestMain:
    """Test running the command."""

    def test_render_file(self, temp_dir, capsys) -> None:
        """Test rendering a file to stdout."""
        source = temp_dir / "comment.md"
        source.write_text("Hello *world*", encoding="utf-8")

        assert main([str(source)]) == EXIT_SUCCESS
        assert capsys.readouterr().out.strip() == "<p>Hello <em>world</em></p>"

    def test_render_stdin(self, monkeypatch, capsys) -> None:
        """Test '-' reads standard input."""
        monkeypatch.setattr("sys.stdin", io.StringIO("# Title"))
        assert main(["-"]) == EXIT_SUCCESS
        assert capsys.readouterr().out.strip() == "<h1>Title</h1>"

    def test_out_file(self, temp_dir, capsys) -> None:
        """Test --out writes the HTML to a file."""
        source = temp_dir / "in.md"
        target = temp_dir / "out.html"
        source.write_text("text", encoding="utf-8")

        assert main([str(source), "--out", str(target)]) == EXIT_SUCCESS
        assert target.read_text(encoding="utf-8") == "<p>text</p>\n"
        assert capsys.readouterr().out == ""

    def test_json_output(self, temp_dir, capsys) -> None:
        """Test --json prints contents and diagnostics."""
        source = temp_dir / "in.md"
        source.write_text("[x](javascript:alert(1))", encoding="utf-8")

        assert main([str(source), "--json"]) == EXIT_SUCCESS
        payload = json.loads(capsys.readouterr().out)
        assert payload["contents"] == "<p><a>x</a></p>"
        assert payload["messages"][0]["kind"] == "sanitized-content"

    def test_diagnostics_table_on_stderr(self, temp_dir, capsys) -> None:
        """Test diagnostics are printed to stderr unless --quiet is given."""
        source = temp_dir / "in.md"
        source.write_text("<script>x</script>\n\nok", encoding="utf-8")

        assert main([str(source)]) == EXIT_SUCCESS
        captured = capsys.readouterr()
        assert "sanitized-content" in captured.err
        assert "script" not in captured.out

        assert main([str(source), "--quiet"]) == EXIT_SUCCESS
        assert "sanitized-content" not in capsys.readouterr().err

    def test_disable_tokenizer(self, temp_dir, capsys) -> None:
        """Test --disable switches a tokenizer off."""
        source = temp_dir / "in.md"
        source.write_text("~~x~~", encoding="utf-8")

        assert main([str(source), "--disable", "strikethrough"]) == EXIT_SUCCESS
        assert "<del>" not in capsys.readouterr().out

    def test_missing_file(self, temp_dir, capsys) -> None:
        """Test a missing input file is an input error."""
        assert main([str(temp_dir / "missing.md")]) == EXIT_INPUT_ERROR
        assert "Error reading input" in capsys.readouterr().err

    def test_too_deep(self, temp_dir, capsys) -> None:
        """Test a document over the depth limit is a render error."""
        source = temp_dir / "deep.md"
        source.write_text("> > > > > x", encoding="utf-8")

        assert main([str(source), "--limit-depth", "3"]) == EXIT_RENDER_ERROR
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Error:" in captured.err
