"""Tests for XHTML and JSON rendering of structure events."""

import json
import xml.dom.minidom

from ocr_structure import __version__
from ocr_structure.assembler import assemble_page
from ocr_structure.config import AssemblyConfig
from ocr_structure.models import BoundingBox, FontAttributes, WritingDirection
from ocr_structure.render import (
    document_footer,
    document_header,
    events_to_json,
    render_page_xhtml,
)


def test_document_wrapper():
    header = document_header("Ledger <1923>")
    assert header.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert "<title>Ledger &lt;1923&gt;</title>" in header
    assert f"ocr-structure {__version__}" in header
    assert "ocrp_font" not in header
    assert "ocrp_lang ocrp_dir ocrp_font ocrp_fsize" in document_header(font_info=True)
    assert document_footer() == " </body>\n</html>\n"


def test_text_page(make_word):
    words = [
        make_word("Dear", starts="all", confidence=91, language="eng",
                  font=FontAttributes(bold=True, pointsize=10)),
        make_word("a<b", box=(60, 10, 90, 30), ends="all", language="deu",
                  font=FontAttributes(italic=True), direction=WritingDirection.RIGHT_TO_LEFT),
    ]
    page = render_page_xhtml(
        assemble_page(words, []), page_number=0, image_name="scan.png",
        page_box=BoundingBox(0, 0, 600, 400),
    )

    assert "<div class='page' id='page_1' filename='scan.png' left='0' top='0' " \
           "width='600' height='400' ppageno='0'>" in page
    assert "<div class='block' id='block_1_1'" in page
    assert "<p class='paragraph' id='par_1_1' lang='eng'" in page
    assert "<span class='line' id='line_1_1'" in page
    assert "wordconfidence='91'" in page
    assert "<strong>Dear</strong>" in page
    assert "<em>a&lt;b</em>" in page
    assert "lang='deu'" in page
    assert "dir='rtl'" in page
    assert "fontsize='10'" in page


def test_rtl_paragraph(make_word):
    word = make_word("x", starts="all", ends="all", paragraph_is_ltr=False)
    page = render_page_xhtml(assemble_page([word], []))
    assert "<p class='paragraph' dir='rtl' id='par_1_1'" in page


def test_font_name_needs_font_info(make_word):
    word = make_word("x", starts="all", ends="all", font=FontAttributes(font_name="Times"))

    plain = render_page_xhtml(assemble_page([word], []))
    events = assemble_page([word], [], config=AssemblyConfig(font_info=True))
    with_font = render_page_xhtml(events, font_info=True)

    assert "font_name" not in plain
    assert "font_name='Times'" in with_font


def test_table_page(make_word, sample_table):
    words = [
        make_word("a", box=(110, 110, 150, 130)),
        make_word("b", box=(210, 110, 250, 130)),
        make_word("c", box=(110, 210, 150, 230)),
    ]
    page = render_page_xhtml(assemble_page(words, [sample_table]))

    assert page.count("<table id='table_1_1'>") == 1
    assert page.count("<tr ") == 2
    assert page.count("<td ") == 3
    assert page.index("</tbody>") < page.index("</table>")
    assert "<td id='cell_1_1' left='100' top='100' right='200' bottom='200'>" in page


def test_page_is_well_formed(make_word, sample_table):
    words = [
        make_word("intro", starts="all", ends="all"),
        make_word("a&b", box=(110, 110, 150, 130)),
        make_word("outro", box=(10, 350, 60, 370), starts="all", ends="all"),
    ]
    document = (
        document_header()
        + render_page_xhtml(assemble_page(words, [sample_table]), image_name="p'1.png")
        + document_footer()
    )
    # Parses as XML; raises on unbalanced or unescaped markup
    dom = xml.dom.minidom.parseString(document.encode("utf-8"))
    assert len(dom.getElementsByTagName("table")) == 1
    assert len(dom.getElementsByTagName("p")) == 2


def test_events_to_json(make_word, sample_table):
    words = [
        make_word("head", starts="all", ends="all", font=FontAttributes(bold=True)),
        make_word("cell", box=(110, 110, 150, 130), direction=WritingDirection.RIGHT_TO_LEFT),
    ]
    data = events_to_json(assemble_page(words, [sample_table]), [sample_table], page_number=3)
    text = json.dumps(data)

    assert data["page_number"] == 3
    assert data["tables"][0]["num_rows"] == 2
    first = data["events"][0]
    assert first == {"kind": "open", "container": "block", "seq": 1, "id": "block_4_1",
                     "bbox": [10, 10, 50, 30]}
    word = next(e for e in data["events"] if e["container"] == "word")
    assert word["attrs"]["font"]["bold"] is True
    assert "cell" in text
