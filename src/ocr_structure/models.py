"""Core data types shared by table detection and document assembly."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

import numpy as np


class Level(str, Enum):
    """Structural levels reported by the OCR engine for each word."""
    BLOCK = "block"
    PARAGRAPH = "paragraph"
    LINE = "line"
    WORD = "word"


class WritingDirection(str, Enum):
    """Writing direction of a recognized word."""
    LEFT_TO_RIGHT = "ltr"
    RIGHT_TO_LEFT = "rtl"
    MIX = "mix"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class Point:
    """Pixel position in page coordinates."""
    x: int
    y: int


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned pixel box; right and bottom are exclusive."""

    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    @property
    def center(self) -> Point:
        # Integer division matches the truncation of the word center
        # used when the boxes came from the recognizer.
        return Point((self.left + self.right) // 2, (self.top + self.bottom) // 2)

    def contains(self, point: Point) -> bool:
        return self.left <= point.x < self.right and self.top <= point.y < self.bottom

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.left, self.top, self.right, self.bottom)

    @classmethod
    def from_xywh(cls, x: int, y: int, w: int, h: int) -> "BoundingBox":
        return cls(int(x), int(y), int(x + w), int(y + h))


@dataclass(frozen=True)
class FontAttributes:
    """Font attributes of a recognized word."""
    bold: bool = False
    italic: bool = False
    underlined: bool = False
    monospace: bool = False
    serif: bool = False
    smallcaps: bool = False
    pointsize: int = 0
    font_id: int = -1
    font_name: Optional[str] = None


@dataclass(frozen=True)
class RecognizedWord:
    """One word of the recognizer's ordered output stream.

    ``starts`` holds the levels at which this word is the first element and
    ``ends`` the levels at which it is the final word. ``level_boxes`` gives
    the bounding box of the enclosing block, paragraph and line.
    """

    text: str
    bbox: BoundingBox
    confidence: float = 0.0
    font: FontAttributes = field(default_factory=FontAttributes)
    language: Optional[str] = None
    paragraph_is_ltr: bool = True
    direction: WritingDirection = WritingDirection.LEFT_TO_RIGHT
    from_dictionary: bool = False
    numeric: bool = False
    starts: FrozenSet[Level] = frozenset()
    ends: FrozenSet[Level] = frozenset()
    level_boxes: Dict[Level, BoundingBox] = field(default_factory=dict, hash=False)

    @property
    def center(self) -> Point:
        return self.bbox.center

    @property
    def is_blank(self) -> bool:
        return not self.text or self.text.isspace()

    def is_first(self, level: Level) -> bool:
        return level in self.starts

    def is_last(self, level: Level) -> bool:
        return level in self.ends

    def is_final_word(self, level: Level) -> bool:
        """Whether no further word of the same ``level`` element follows."""
        return self.is_last(level)

    def level_box(self, level: Level) -> BoundingBox:
        if level == Level.WORD:
            return self.bbox
        return self.level_boxes.get(level, self.bbox)


@dataclass
class TableRegion:
    """A detected ruled table.

    ``xs`` and ``ys`` are the ascending grid boundary positions, ``rect`` is
    the bounding rectangle of every joint point and ``index`` is the order in
    which the table was discovered on the page.
    """

    joints: List[np.ndarray]
    xs: List[int]
    ys: List[int]
    rect: BoundingBox
    index: int = 0
    area: float = 0.0

    @property
    def num_rows(self) -> int:
        return max(len(self.ys) - 1, 0)

    @property
    def num_cols(self) -> int:
        return max(len(self.xs) - 1, 0)

    def _band(self, bounds: List[int], idx: int, near: int, far: int) -> Tuple[int, int]:
        if not bounds:
            return near, far
        if idx <= 0 or idx >= len(bounds):
            # Index 0 means "past the last detected boundary".
            return bounds[-1], max(far, bounds[-1])
        return bounds[idx - 1], bounds[idx]

    def row_box(self, row: int) -> BoundingBox:
        top, bottom = self._band(self.ys, row, self.rect.top, self.rect.bottom)
        return BoundingBox(self.rect.left, top, self.rect.right, bottom)

    def cell_box(self, row: int, col: int) -> BoundingBox:
        top, bottom = self._band(self.ys, row, self.rect.top, self.rect.bottom)
        left, right = self._band(self.xs, col, self.rect.left, self.rect.right)
        return BoundingBox(left, top, right, bottom)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "rect": list(self.rect.as_tuple()),
            "xs": list(self.xs),
            "ys": list(self.ys),
            "num_rows": self.num_rows,
            "num_cols": self.num_cols,
            "joint_count": len(self.joints),
            "area": float(self.area),
        }
