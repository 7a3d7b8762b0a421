"""
Tests for DocTags conversion, page rendering and multi-page export.
"""

import pytest
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from doctags_recon.config import (
    PipelineConfig,
    FULL_PAGE_PROMPT,
    FORMULA_PROMPT,
    CODE_PROMPT,
    JSON_PARSE_ERROR,
)
from doctags_recon.utils import export
from doctags_recon.utils.export import (
    doctags_to_markdown,
    doctags_to_dict,
    doctags_to_json,
    render_page,
    DocumentExporter,
)
from doctags_recon.utils.io import load_json


SIMPLE_PAGE = (
    "<doctag><section_header_level_1><loc_1>Title</section_header_level_1>"
    "<text><loc_2>Body</text></doctag>"
)
TABLE_PAGE = "<otsl><fcel>A<fcel>B<nl><fcel>C<fcel>D</otsl>"


class TestDocTagsToMarkdown:
    """Tests for doctags_to_markdown()."""

    def test_header_and_text(self):
        assert doctags_to_markdown(SIMPLE_PAGE) == "\n## Title\n\nBody\n"

    def test_meta_tokens_removed(self):
        raw = (
            "User: Convert this page to docling. Assistant: "
            + SIMPLE_PAGE
            + "<end_of_utterance>"
        )

        assert doctags_to_markdown(raw) == "\n## Title\n\nBody\n"

    def test_header_levels(self):
        raw = (
            "<doctag><section_header_level_2><loc_1>Two</section_header_level_2>"
            "<section_header_level_3><loc_2>Three</section_header_level_3></doctag>"
        )

        md = doctags_to_markdown(raw)

        assert "### Two" in md
        assert "#### Three" in md

    def test_list_items(self):
        raw = (
            "<doctag><unordered_list>"
            "<list_item><loc_1>one</list_item>"
            "<list_item><loc_2>two</list_item>"
            "</unordered_list></doctag>"
        )

        assert doctags_to_markdown(raw) == "\n- one\n- two\n\n"

    def test_blank_line_runs_collapsed(self):
        raw = "<doctag><text><loc_1>A</text>\n\n\n<text><loc_2>B</text></doctag>"

        assert "\n\n\n" not in doctags_to_markdown(raw)

    def test_legacy_output(self):
        assert doctags_to_markdown("Hello 1>2>3>4>5>world   again") == "Hello world\n\nagain"

    def test_empty_input(self):
        assert doctags_to_markdown("") == ""


class TestDocTagsToJson:
    """Tests for doctags_to_dict() and doctags_to_json()."""

    def test_document_tree(self):
        assert doctags_to_dict(SIMPLE_PAGE) == {
            "sections": [
                {"type": "header", "level": 1, "content": "Title", "location": "1"},
                {"type": "text", "content": "Body", "location": "2"},
            ]
        }

    def test_json_string(self):
        text = doctags_to_json(SIMPLE_PAGE)

        assert json.loads(text) == doctags_to_dict(SIMPLE_PAGE)
        assert '\n  "sections"' in text

    def test_non_ascii_kept(self):
        text = doctags_to_json("<doctag><text><loc_1>Größe</text></doctag>")

        assert "Größe" in text

    def test_legacy_output(self):
        result = doctags_to_dict("1>90>0>0>0>Alpha 2>30>0>0>0>Beta")

        assert sorted(s["content"] for s in result["sections"]) == ["Alpha", "Beta"]
        assert all(s["type"] == "text" for s in result["sections"])

    def test_empty_input(self):
        assert doctags_to_dict("") == {"sections": []}

    def test_failure_reported_not_raised(self, monkeypatch):
        def broken(_):
            raise RuntimeError("boom")

        monkeypatch.setattr(export, "extract_sections", broken)

        result = doctags_to_dict(SIMPLE_PAGE + "<end_of_utterance>")

        assert result == {"error": JSON_PARSE_ERROR, "rawContent": SIMPLE_PAGE}


class TestRendererAgreement:
    """The JSON tree and the Markdown page list content in the same order."""

    MIXED_PAGE = (
        "<doctag>"
        "<text><loc_1>Intro</text>"
        "<unordered_list><list_item><loc_2>one</list_item>"
        "<list_item><loc_3>two</list_item></unordered_list>"
        "<section_header_level_2><loc_4>Heading</section_header_level_2>"
        "<table><loc_5><table_row><loc_6><table_cell><loc_7>cell</table_cell></table_row></table>"
        "<text><loc_8>Outro</text>"
        "</doctag>"
    )

    @staticmethod
    def _contents(section):
        if section["type"] == "unordered_list":
            return [item["content"] for item in section["items"]]
        if section["type"] == "table":
            return [cell["content"] for row in section["rows"] for cell in row["cells"]]
        return [section["content"]]

    def test_content_order_matches(self):
        markdown = doctags_to_markdown(self.MIXED_PAGE)
        sections = doctags_to_dict(self.MIXED_PAGE)["sections"]

        contents = [text for section in sections for text in self._contents(section)]
        assert contents == ["Intro", "one", "two", "Heading", "cell", "Outro"]

        offsets = [markdown.index(text) for text in contents]
        assert offsets == sorted(offsets)


class TestRenderPage:
    """Tests for prompt-driven page rendering."""

    def test_raw_passthrough(self):
        assert render_page("<pad>anything", output_format="raw") == "<pad>anything"

    def test_full_page_markdown(self):
        assert render_page(SIMPLE_PAGE) == "\n## Title\n\nBody\n"

    def test_full_page_html(self):
        html = render_page(SIMPLE_PAGE, output_format="html")

        assert "<h2>Title</h2>" in html
        assert "<p>Body</p>" in html

    def test_table_prompt(self):
        md = render_page(TABLE_PAGE, "Convert table to OTSL.", "markdown")
        html = render_page(TABLE_PAGE, "Convert table to OTSL.", "html")

        assert md == "| A | B |\n| --- | --- |\n| C | D |\n"
        assert html.startswith('<table class="rendered-table">')

    def test_chart_prompt(self):
        html = render_page(
            "<chart><ched>Year<ched>Sales<nl><fcel>2020<fcel>5</chart>",
            "Convert chart to OTSL.",
            "html"
        )

        assert "<th>2020</th>" in html

    def test_formula_prompt(self):
        raw = r"<formula>\alpha < 1</formula>"

        assert render_page(raw, FORMULA_PROMPT) == r"\alpha < 1"
        assert render_page(raw, FORMULA_PROMPT, "html") == (
            r'<div class="latex-body">$$\alpha &lt; 1$$</div>'
        )

    def test_code_prompt(self):
        raw = "<code><_Python_>print(1)</code>"

        assert render_page(raw, CODE_PROMPT) == "print(1)"
        html = render_page(raw, CODE_PROMPT, "html")
        assert 'class="language-python"' in html
        assert "print(1)" in html

    def test_json_ignores_prompt(self):
        assert json.loads(render_page(SIMPLE_PAGE, CODE_PROMPT, "json")) == doctags_to_dict(SIMPLE_PAGE)

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            render_page(SIMPLE_PAGE, output_format="pdf")


class TestDocumentExporter:
    """Tests for multi-page export."""

    def test_render_markdown_pages(self, tmp_path):
        exporter = DocumentExporter(tmp_path)

        text = exporter.render([SIMPLE_PAGE, SIMPLE_PAGE], "markdown")

        assert text == "\n## Title\n\nBody\n" + "\n\n---\n\n" + "\n## Title\n\nBody\n"

    def test_render_html_pages(self, tmp_path):
        exporter = DocumentExporter(tmp_path)

        html = exporter.render([SIMPLE_PAGE, TABLE_PAGE], "html", ["Convert this page to docling.", "Convert table to OTSL."])

        assert html.count("\n<hr />\n") == 1
        assert "rendered-table" in html

    def test_missing_prompts_default_to_full_page(self, tmp_path):
        exporter = DocumentExporter(tmp_path)

        text = exporter.render([TABLE_PAGE, SIMPLE_PAGE], "markdown", ["Convert table to OTSL."])

        assert text.startswith("| A | B |")
        assert text.endswith("\n## Title\n\nBody\n")

    def test_export_default_formats(self, tmp_path):
        exporter = DocumentExporter(tmp_path, "doc")

        results = exporter.export([SIMPLE_PAGE])

        assert set(results) == {"markdown", "json"}
        assert results["markdown"] == tmp_path / "doc.md"
        assert load_json(results["json"]) == [doctags_to_dict(SIMPLE_PAGE)]

    def test_export_all(self, tmp_path):
        exporter = DocumentExporter(tmp_path, "doc")

        results = exporter.export([SIMPLE_PAGE], ["all"])

        assert set(results) == {"markdown", "json", "html", "raw"}
        for path in results.values():
            assert path.exists()
        assert results["raw"].read_text(encoding="utf-8") == SIMPLE_PAGE

    def test_max_pages(self, tmp_path):
        config = PipelineConfig(max_pages=1)
        exporter = DocumentExporter(tmp_path, "doc", config=config)

        results = exporter.export([SIMPLE_PAGE, TABLE_PAGE], ["json"])

        assert len(load_json(results["json"])) == 1

    def test_export_is_deterministic(self, tmp_path):
        first = DocumentExporter(tmp_path / "a").export([SIMPLE_PAGE], ["all"])
        second = DocumentExporter(tmp_path / "b").export([SIMPLE_PAGE], ["all"])

        for fmt in first:
            assert first[fmt].read_bytes() == second[fmt].read_bytes()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
