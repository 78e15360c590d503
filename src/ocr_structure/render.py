"""
Rendering of assembled structure events.

Pages render as XHTML with ``div.page``, ``div.block``, ``p.paragraph``,
``span.line`` and ``span.word`` elements, and tables as
``table/tbody/tr/td``. A JSON form of the same events is available for
programmatic consumers.
"""

from dataclasses import asdict
from enum import Enum
from html import escape
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .assembler import ContainerType, StructureEvent
from .models import BoundingBox, TableRegion
from . import __version__

XHTML_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Transitional//EN"\n'
    '    "http://www.w3.org/TR/xhtml1/DTD/xhtml1-transitional.dtd">\n'
    '<html xmlns="http://www.w3.org/1999/xhtml" xml:lang="en" lang="en">\n'
    ' <head>\n'
    '  <title>{title}</title>\n'
    '  <meta http-equiv="Content-Type" content="text/html;charset=utf-8"/>\n'
    "  <meta name='ocr-system' content='ocr-structure {version}' />\n"
    "  <meta name='ocr-capabilities' content='{capabilities}'/>\n"
    ' </head>\n'
    ' <body>\n'
)

BASE_CAPABILITIES = "ocr_page ocr_carea ocr_par ocr_line ocrx_word ocrp_wconf ocr_table"
FONT_CAPABILITIES = "ocrp_lang ocrp_dir ocrp_font ocrp_fsize"


def _attr(name: str, value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    elif isinstance(value, bool):
        value = int(value)
    return f" {name}='{escape(str(value), quote=True)}'"


def _box_attrs(bbox: Optional[BoundingBox]) -> str:
    if bbox is None:
        return ""
    return (_attr("left", bbox.left) + _attr("top", bbox.top)
            + _attr("right", bbox.right) + _attr("bottom", bbox.bottom))


def document_header(title: str = "OCR output", font_info: bool = False) -> str:
    """XHTML prologue up to and including the opening ``<body>``."""
    capabilities = BASE_CAPABILITIES
    if font_info:
        capabilities += " " + FONT_CAPABILITIES
    return XHTML_HEADER.format(
        title=escape(title), version=__version__, capabilities=capabilities
    )


def document_footer() -> str:
    return " </body>\n</html>\n"


def _word_open(event: StructureEvent, font_info: bool) -> str:
    attrs = event.attrs
    font = attrs.get("font")
    tag = "<span class='word'" + _attr("id", event.ident)
    tag += _attr("wordconfidence", attrs.get("confidence", 0))
    tag += _box_attrs(event.bbox)
    tag += _attr("wordfirst", attrs.get("wordfirst", False))
    if attrs.get("language"):
        tag += _attr("lang", attrs["language"])
    tag += _attr("wordfromdictionary", attrs.get("from_dictionary", False))
    tag += _attr("wordnumeric", attrs.get("numeric", False))
    if font_info and font is not None and font.font_name:
        tag += _attr("font_name", font.font_name)
    tag += _attr("fontsize", font.pointsize if font is not None else 0)
    if "direction" in attrs:
        tag += _attr("dir", attrs["direction"])
    tag += ">"

    text = escape(attrs.get("text", ""), quote=False)
    if font is not None and font.italic:
        text = f"<em>{text}</em>"
    if font is not None and font.bold:
        text = f"<strong>{text}</strong>"
    return tag + text


def _open_tag(event: StructureEvent) -> str:
    container = event.container
    ident = _attr("id", event.ident)
    if container == ContainerType.BLOCK:
        return f"<div class='block'{ident}{_box_attrs(event.bbox)}>"
    if container == ContainerType.PARAGRAPH:
        tag = "<p class='paragraph'"
        if "direction" in event.attrs:
            tag += _attr("dir", event.attrs["direction"])
        tag += ident
        if event.attrs.get("language"):
            tag += _attr("lang", event.attrs["language"])
        return tag + _box_attrs(event.bbox) + ">"
    if container == ContainerType.LINE:
        return f"<span class='line'{ident}{_box_attrs(event.bbox)}>"
    if container == ContainerType.TABLE:
        return f"<table{ident}>\n<tbody>"
    if container == ContainerType.ROW:
        return f"<tr{ident}{_box_attrs(event.bbox)}>"
    if container == ContainerType.CELL:
        return f"<td{ident}{_box_attrs(event.bbox)}>"
    raise ValueError(f"Unsupported container: {container}")


CLOSE_TAGS = {
    ContainerType.BLOCK: "</div>",
    ContainerType.PARAGRAPH: "</p>",
    ContainerType.LINE: "</span>",
    ContainerType.TABLE: "</tbody>\n</table>",
    ContainerType.ROW: "</tr>",
    ContainerType.CELL: "</td>",
}


def render_page_xhtml(
    events: Iterable[StructureEvent],
    page_number: int = 0,
    image_name: str = "",
    page_box: Optional[BoundingBox] = None,
    font_info: bool = False,
) -> str:
    """
    Render one page's events as an XHTML ``div.page`` fragment.

    Args:
        events: Balanced events from the assembler
        page_number: 0-based page number, rendered 1-based
        image_name: Source image file name
        page_box: Page area; omitted from the markup when None
        font_info: Whether to render font names

    Returns:
        XHTML fragment ending with a newline
    """
    page_id = page_number + 1
    head = f"  <div class='page'{_attr('id', f'page_{page_id}')}{_attr('filename', image_name)}"
    if page_box is not None:
        head += (_attr("left", page_box.left) + _attr("top", page_box.top)
                 + _attr("width", page_box.width) + _attr("height", page_box.height))
    head += _attr("ppageno", page_number) + ">\n"

    lines: List[str] = [head]
    depth = 0
    for event in events:
        indent = "   " + " " * depth
        if event.container == ContainerType.WORD:
            if event.is_open:
                lines.append(indent + _word_open(event, font_info))
            else:
                lines.append("</span>\n")
            continue

        if event.is_open:
            lines.append(indent + _open_tag(event) + "\n")
            depth += 1
        else:
            depth -= 1
            lines.append("   " + " " * depth + CLOSE_TAGS[event.container] + "\n")

    lines.append("  </div>\n")
    return "".join(lines)


def _json_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "__dataclass_fields__"):
        return asdict(value)
    return value


def event_to_dict(event: StructureEvent) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "kind": event.kind.value,
        "container": event.container.value,
        "seq": event.seq,
        "id": event.ident,
    }
    if event.bbox is not None:
        data["bbox"] = list(event.bbox.as_tuple())
    if event.attrs:
        data["attrs"] = {key: _json_value(value) for key, value in event.attrs.items()}
    return data


def events_to_json(
    events: Iterable[StructureEvent],
    tables: Sequence[TableRegion] = (),
    page_number: int = 0,
) -> Dict[str, Any]:
    """JSON-serialisable form of one page's tables and events."""
    return {
        "page_number": page_number,
        "tables": [table.to_dict() for table in tables],
        "events": [event_to_dict(event) for event in events],
    }
