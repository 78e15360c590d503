"""
Structured document assembly from a recognized word stream.

A single forward pass over one page's words turns the flat OCR output into
nested open/close events. Words whose center falls inside a detected table
are placed into table/row/cell containers; all other words follow the
recognizer's block/paragraph/line structure.
"""

from collections import Counter
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from .config.models import AssemblyConfig
from .models import BoundingBox, Level, RecognizedWord, TableRegion, WritingDirection
from .processors.table_lookup import find_table_index, locate

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    """Whether an event opens or closes a container."""
    OPEN = "open"
    CLOSE = "close"


class ContainerType(str, Enum):
    """Structural containers emitted by the assembler."""
    BLOCK = "block"
    PARAGRAPH = "paragraph"
    LINE = "line"
    TABLE = "table"
    ROW = "row"
    CELL = "cell"
    WORD = "word"


ID_PREFIXES = {
    ContainerType.BLOCK: "block",
    ContainerType.PARAGRAPH: "par",
    ContainerType.LINE: "line",
    ContainerType.TABLE: "table",
    ContainerType.ROW: "row",
    ContainerType.CELL: "cell",
    ContainerType.WORD: "word",
}

TEXT_CONTAINERS = {
    Level.BLOCK: ContainerType.BLOCK,
    Level.PARAGRAPH: ContainerType.PARAGRAPH,
    Level.LINE: ContainerType.LINE,
}


@dataclass(frozen=True)
class StructureEvent:
    """One open or close event of the assembled page."""

    kind: EventKind
    container: ContainerType
    seq: int
    ident: str
    bbox: Optional[BoundingBox] = None
    attrs: Dict[str, Any] = field(default_factory=dict, hash=False)

    @property
    def is_open(self) -> bool:
        return self.kind == EventKind.OPEN


@dataclass
class AssemblerContext:
    """Running state of one page's assembly pass.

    The open containers are kept on ``stack`` as (type, seq) pairs; closing a
    container closes everything opened inside it first, so every open event
    gets exactly one matching close event.
    """

    page_number: int = 0
    prev_table_idx: Optional[int] = None
    cur_table_idx: Optional[int] = None
    prev_row: int = 0
    prev_col: int = 0
    paragraph_is_ltr: bool = True
    paragraph_language: Optional[str] = None
    stack: List[Tuple[ContainerType, int]] = field(default_factory=list)
    counters: Counter = field(default_factory=Counter)
    events: List[StructureEvent] = field(default_factory=list)

    def ident(self, container: ContainerType, seq: int) -> str:
        return f"{ID_PREFIXES[container]}_{self.page_number + 1}_{seq}"

    def is_open(self, container: ContainerType) -> bool:
        return any(kind == container for kind, _ in self.stack)

    def open(
        self, container: ContainerType, bbox: Optional[BoundingBox] = None, **attrs: Any
    ) -> StructureEvent:
        self.counters[container] += 1
        seq = self.counters[container]
        event = StructureEvent(
            EventKind.OPEN, container, seq, self.ident(container, seq), bbox, attrs
        )
        self.stack.append((container, seq))
        self.events.append(event)
        return event

    def close_top(self) -> StructureEvent:
        container, seq = self.stack.pop()
        event = StructureEvent(EventKind.CLOSE, container, seq, self.ident(container, seq))
        self.events.append(event)
        return event

    def close(self, container: ContainerType) -> None:
        """Close the innermost open ``container`` and everything inside it."""
        if not self.is_open(container):
            return
        while self.close_top().container != container:
            pass

    def close_all(self) -> None:
        while self.stack:
            self.close_top()


class StructuredDocumentAssembler:
    """Assemble a page's recognized words into nested structure events."""

    def __init__(
        self,
        tables: Sequence[TableRegion],
        page_number: int = 0,
        config: Optional[AssemblyConfig] = None,
    ):
        self.tables = list(tables)
        self.page_number = page_number
        self.config = config or AssemblyConfig()

    def assemble(self, words: Iterable[RecognizedWord]) -> List[StructureEvent]:
        """Run the assembly pass over ``words`` in stream order.

        Returns:
            Ordered list of open/close events, balanced per container type
        """
        context = AssemblerContext(page_number=self.page_number)
        for word in words:
            self.process_word(context, word)
        self.finish(context)
        return context.events

    def process_word(self, context: AssemblerContext, word: RecognizedWord) -> None:
        """Advance ``context`` by one word."""
        if word.is_blank:
            return

        center = word.center
        context.cur_table_idx = find_table_index(center, self.tables)

        if context.cur_table_idx != context.prev_table_idx:
            context.close(ContainerType.TABLE)
            context.prev_row = 0
            context.prev_col = 0
            if context.cur_table_idx is not None:
                # Tables sit beside text blocks, never inside them
                context.close_all()
                table = self.tables[context.cur_table_idx]
                context.open(ContainerType.TABLE, table_index=table.index)

        if context.cur_table_idx is not None:
            self._add_table_word(context, word, self.tables[context.cur_table_idx])
        else:
            self._add_text_word(context, word)

        context.prev_table_idx = context.cur_table_idx

    def finish(self, context: AssemblerContext) -> None:
        """Close every container still open at the end of the page."""
        context.close_all()
        logger.debug(
            f"Assembled page {context.page_number + 1}: "
            + ", ".join(f"{c.value}={n}" for c, n in sorted(context.counters.items()))
        )

    def _add_table_word(
        self, context: AssemblerContext, word: RecognizedWord, table: TableRegion
    ) -> None:
        row, col = locate(word.center, table)

        if row > context.prev_row:
            context.close(ContainerType.ROW)
            context.prev_row = row
            context.prev_col = 0
            context.open(ContainerType.ROW, table.row_box(row), row=row)
        elif not context.is_open(ContainerType.ROW):
            # First word of the table lies past the last row boundary
            context.open(ContainerType.ROW, table.row_box(context.prev_row), row=context.prev_row)

        if col > context.prev_col:
            context.close(ContainerType.CELL)
            context.prev_col = col
            context.open(
                ContainerType.CELL,
                table.cell_box(context.prev_row, col),
                row=context.prev_row,
                col=col,
            )
        elif not context.is_open(ContainerType.CELL):
            context.open(
                ContainerType.CELL,
                table.cell_box(context.prev_row, context.prev_col),
                row=context.prev_row,
                col=context.prev_col,
            )

        self._emit_word(context, word, in_table=True)

    def _add_text_word(self, context: AssemblerContext, word: RecognizedWord) -> None:
        for level in (Level.BLOCK, Level.PARAGRAPH, Level.LINE):
            container = TEXT_CONTAINERS[level]
            if word.is_first(level) or not context.is_open(container):
                context.close(container)
                self._open_text_container(context, word, level)

        self._emit_word(context, word, in_table=False)

        if word.is_last(Level.LINE):
            context.close(ContainerType.LINE)
        if word.is_last(Level.PARAGRAPH):
            context.close(ContainerType.PARAGRAPH)
            context.paragraph_is_ltr = True
            context.paragraph_language = None
        if word.is_last(Level.BLOCK):
            context.close(ContainerType.BLOCK)

    def _open_text_container(
        self, context: AssemblerContext, word: RecognizedWord, level: Level
    ) -> None:
        bbox = word.level_box(level)
        if level == Level.BLOCK:
            context.paragraph_is_ltr = True
            context.open(ContainerType.BLOCK, bbox)
        elif level == Level.PARAGRAPH:
            context.paragraph_is_ltr = word.paragraph_is_ltr
            context.paragraph_language = word.language
            attrs: Dict[str, Any] = {}
            if not word.paragraph_is_ltr:
                attrs["direction"] = WritingDirection.RIGHT_TO_LEFT
            if word.language:
                attrs["language"] = word.language
            context.open(ContainerType.PARAGRAPH, bbox, **attrs)
        else:
            context.open(ContainerType.LINE, bbox)

    def _emit_word(self, context: AssemblerContext, word: RecognizedWord, in_table: bool) -> None:
        font = word.font if self.config.font_info else replace(word.font, font_name=None)
        attrs: Dict[str, Any] = {
            "text": word.text,
            "confidence": int(word.confidence),
            "font": font,
            "wordfirst": word.is_first(Level.LINE),
            "from_dictionary": word.from_dictionary,
            "numeric": word.numeric,
        }

        enclosing_language = None if in_table else context.paragraph_language
        if word.language and word.language != enclosing_language:
            attrs["language"] = word.language

        if not in_table and self.config.emit_word_direction:
            direction = self._word_direction(word, context.paragraph_is_ltr)
            if direction is not None:
                attrs["direction"] = direction

        context.open(ContainerType.WORD, word.bbox, **attrs)
        context.close(ContainerType.WORD)

    @staticmethod
    def _word_direction(word: RecognizedWord, paragraph_is_ltr: bool) -> Optional[WritingDirection]:
        """Word direction, only when it differs from the paragraph's."""
        if word.direction == WritingDirection.LEFT_TO_RIGHT and not paragraph_is_ltr:
            return WritingDirection.LEFT_TO_RIGHT
        if word.direction == WritingDirection.RIGHT_TO_LEFT and paragraph_is_ltr:
            return WritingDirection.RIGHT_TO_LEFT
        return None


def assemble_page(
    words: Iterable[RecognizedWord],
    tables: Sequence[TableRegion],
    page_number: int = 0,
    config: Optional[AssemblyConfig] = None,
) -> List[StructureEvent]:
    """Assemble one page; see :class:`StructuredDocumentAssembler`."""
    return StructuredDocumentAssembler(tables, page_number, config).assemble(words)


def count_events(events: Iterable[StructureEvent]) -> Counter:
    """Count events by (container, kind)."""
    return Counter((event.container, event.kind) for event in events)


def is_balanced(events: Iterable[StructureEvent]) -> bool:
    """Whether every open event has exactly one matching, properly nested close."""
    stack: List[Tuple[ContainerType, int]] = []
    for event in events:
        key = (event.container, event.seq)
        if event.is_open:
            stack.append(key)
        elif not stack or stack.pop() != key:
            return False
    return not stack
