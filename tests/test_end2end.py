"""
End-to-end tests for the command-line pipeline.
"""

import pytest
import json
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from doctags_recon import cli
from doctags_recon.cli import main, parse_page_range, resolve_prompt


PAGE_ONE = (
    "User: Convert this page to docling. Assistant: "
    "<doctag><section_header_level_1><loc_1>Report</section_header_level_1>"
    "<text><loc_2>First page.</text></doctag><end_of_utterance>"
)
PAGE_TWO = "<doctag><text><loc_3>Second page.</text></doctag>"
TABLE = "<otsl><ched>Name<ched>Qty<nl><fcel>Bolt<fcel>4</otsl>"


class TestEndToEnd:
    """End-to-end integration tests."""

    @pytest.fixture
    def pages_dir(self, tmp_path):
        """Folder holding two page files."""
        folder = tmp_path / "pages"
        folder.mkdir()
        (folder / "page_001.txt").write_text(PAGE_ONE, encoding="utf-8")
        (folder / "page_002.txt").write_text(PAGE_TWO, encoding="utf-8")
        (folder / "notes.md").write_text("ignored", encoding="utf-8")
        return folder

    def test_single_page(self, tmp_path):
        page = tmp_path / "page.txt"
        page.write_text(PAGE_ONE, encoding="utf-8")
        out = tmp_path / "out"

        assert main(["--input", str(page), "--output", str(out), "--quiet"]) == 0

        assert (out / "page.md").read_text(encoding="utf-8") == "\n## Report\n\nFirst page.\n"
        data = json.loads((out / "page.json").read_text(encoding="utf-8"))
        assert data[0]["sections"][0] == {
            "type": "header", "level": 1, "content": "Report", "location": "1"
        }

    def test_folder_all_formats(self, pages_dir, tmp_path):
        out = tmp_path / "out"

        code = main([
            "--input", str(pages_dir), "--output", str(out),
            "--format", "all", "--name", "report", "--quiet"
        ])

        assert code == 0
        for ext in ("md", "json", "html", "txt"):
            assert (out / f"report.{ext}").exists()

        markdown = (out / "report.md").read_text(encoding="utf-8")
        assert markdown.index("First page.") < markdown.index("Second page.")
        assert "\n\n---\n\n" in markdown
        assert len(json.loads((out / "report.json").read_text(encoding="utf-8"))) == 2

    def test_page_selection(self, pages_dir, tmp_path):
        out = tmp_path / "out"

        main(["--input", str(pages_dir), "--output", str(out), "--pages", "2", "--name", "p", "--quiet"])

        markdown = (out / "p.md").read_text(encoding="utf-8")
        assert "Second page." in markdown
        assert "First page." not in markdown

    def test_page_range_from_zero(self, pages_dir, tmp_path):
        """A range starting at 0 keeps the document order."""
        out = tmp_path / "out"

        main(["--input", str(pages_dir), "--output", str(out), "--pages", "0-1", "--name", "p", "--quiet"])

        markdown = (out / "p.md").read_text(encoding="utf-8")
        assert "First page." in markdown
        assert "Second page." not in markdown

    def test_table_prompt_label(self, tmp_path):
        page = tmp_path / "table.txt"
        page.write_text(TABLE, encoding="utf-8")
        out = tmp_path / "out"

        code = main([
            "--input", str(page), "--output", str(out),
            "--prompt", "Extract Table", "--format", "html", "--quiet"
        ])

        assert code == 0
        html = (out / "table.html").read_text(encoding="utf-8")
        assert html == (
            '<table class="rendered-table">'
            '<tr><th>Name</th><th>Qty</th></tr>'
            '<tr><td>Bolt</td><td>4</td></tr>'
            '</table>'
        )

    def test_missing_input(self, tmp_path):
        code = main(["--input", str(tmp_path / "nope.txt"), "--output", str(tmp_path / "out"), "--quiet"])

        assert code == 1
        assert not (tmp_path / "out").exists()

    def test_empty_folder(self, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()

        assert main(["--input", str(empty), "--output", str(tmp_path / "out"), "--quiet"]) == 1

    def test_debug_env_reraises(self, tmp_path, monkeypatch):
        def failing(_):
            raise RuntimeError("boom")

        monkeypatch.setattr(cli, "run_pipeline", failing)
        args = ["--input", str(tmp_path), "--output", str(tmp_path / "out"), "--quiet"]

        monkeypatch.delenv("DOCTAGS_RECON_DEBUG", raising=False)
        assert main(args) == 1

        monkeypatch.setenv("DOCTAGS_RECON_DEBUG", "true")
        with pytest.raises(RuntimeError):
            main(args)

    def test_output_is_deterministic(self, pages_dir, tmp_path):
        for name in ("a", "b"):
            main(["--input", str(pages_dir), "--output", str(tmp_path / name),
                  "--format", "all", "--name", "doc", "--quiet"])

        for ext in ("md", "json", "html", "txt"):
            first = (tmp_path / "a" / f"doc.{ext}").read_bytes()
            second = (tmp_path / "b" / f"doc.{ext}").read_bytes()
            assert first == second


class TestCliHelpers:
    """Tests for argument helpers."""

    def test_parse_page_range(self):
        assert parse_page_range("1-3,5", 10) == [1, 2, 3, 5]
        assert parse_page_range("2-9", 4) == [2, 3, 4]
        assert parse_page_range("7", 4) == []
        assert parse_page_range("0-2", 3) == [1, 2]

    def test_resolve_prompt(self):
        assert resolve_prompt(None) == "Convert this page to docling."
        assert resolve_prompt("Extract Formula") == "Convert formula to LaTeX."
        assert resolve_prompt("Custom prompt") == "Custom prompt"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
