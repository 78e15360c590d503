"""
Recognized word streams for the document assembler.

Words come either from Tesseract TSV output (read from a file or produced by
running the ``tesseract`` command line tool) or from JSON word records that
carry every attribute explicitly.
"""

import csv
import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .exceptions import WordSourceError
from .models import BoundingBox, FontAttributes, Level, RecognizedWord, WritingDirection

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Tesseract TSV levels: 1=page, 2=block, 3=paragraph, 4=line, 5=word
TSV_LEVELS = {2: Level.BLOCK, 3: Level.PARAGRAPH, 4: Level.LINE}
WORD_LEVEL = 5
STRUCTURE_LEVELS = (Level.BLOCK, Level.PARAGRAPH, Level.LINE)


def _int_field(row: Dict[str, str], name: str, default: int = 0) -> int:
    return int(row.get(name) or default)


def _structure_keys(row: Dict[str, str]) -> Dict[Level, Tuple[int, ...]]:
    page = _int_field(row, "page_num", 1)
    block = _int_field(row, "block_num")
    par = _int_field(row, "par_num")
    line = _int_field(row, "line_num")
    return {
        Level.BLOCK: (page, block),
        Level.PARAGRAPH: (page, block, par),
        Level.LINE: (page, block, par, line),
    }


def _row_box(row: Dict[str, str]) -> BoundingBox:
    return BoundingBox.from_xywh(
        _int_field(row, "left"), _int_field(row, "top"),
        _int_field(row, "width"), _int_field(row, "height"),
    )


def words_from_tsv(
    tsv_text: str,
    page_num: Optional[int] = None,
    language: Optional[str] = None,
) -> List[RecognizedWord]:
    """
    Parse Tesseract TSV output into an ordered word stream.

    First/last flags at block, paragraph and line level are derived from
    changes of the block/par/line numbers between consecutive words, and the
    enclosing boxes come from the level 2-4 rows.

    Args:
        tsv_text: Full TSV text including the header row
        page_num: Only keep words of this page (1-based); all pages if None
        language: Language code attached to every word

    Returns:
        Words in recognizer order

    Raises:
        WordSourceError: If a row has malformed numeric fields
    """
    reader = csv.DictReader(tsv_text.splitlines(), delimiter="\t", quoting=csv.QUOTE_NONE)

    level_boxes: Dict[Tuple[Level, Tuple[int, ...]], BoundingBox] = {}
    word_rows: List[Tuple[Dict[Level, Tuple[int, ...]], Dict[str, str], BoundingBox]] = []

    for line_no, row in enumerate(reader, start=2):
        try:
            level = _int_field(row, "level")
            if page_num is not None and _int_field(row, "page_num", 1) != page_num:
                continue
            keys = _structure_keys(row)
            if level in TSV_LEVELS:
                tsv_level = TSV_LEVELS[level]
                level_boxes[(tsv_level, keys[tsv_level])] = _row_box(row)
            elif level == WORD_LEVEL:
                text = row.get("text") or ""
                if text.strip():
                    word_rows.append((keys, row, _row_box(row)))
        except ValueError as e:
            raise WordSourceError(f"Malformed TSV row {line_no}: {e}") from e

    words = []
    for i, (keys, row, bbox) in enumerate(word_rows):
        prev_keys = word_rows[i - 1][0] if i > 0 else None
        next_keys = word_rows[i + 1][0] if i + 1 < len(word_rows) else None

        starts = frozenset(
            level for level in STRUCTURE_LEVELS
            if prev_keys is None or prev_keys[level] != keys[level]
        )
        ends = frozenset(
            level for level in STRUCTURE_LEVELS
            if next_keys is None or next_keys[level] != keys[level]
        )
        boxes = {
            level: level_boxes[(level, keys[level])]
            for level in STRUCTURE_LEVELS
            if (level, keys[level]) in level_boxes
        }

        try:
            confidence = max(float(row.get("conf") or 0.0), 0.0)
        except ValueError:
            confidence = 0.0

        words.append(RecognizedWord(
            text=row["text"],
            bbox=bbox,
            confidence=confidence,
            language=language,
            starts=starts,
            ends=ends,
            level_boxes=boxes,
        ))

    logger.debug(f"Parsed {len(words)} words from TSV")
    return words


def _box_from_record(value: Any) -> BoundingBox:
    if isinstance(value, dict):
        if "width" in value:
            return BoundingBox.from_xywh(value["left"], value["top"], value["width"], value["height"])
        return BoundingBox(int(value["left"]), int(value["top"]),
                           int(value["right"]), int(value["bottom"]))
    left, top, right, bottom = value
    return BoundingBox(int(left), int(top), int(right), int(bottom))


def _word_from_record(record: Dict[str, Any]) -> RecognizedWord:
    font_data = record.get("font") or {}
    level_boxes = {
        Level(name): _box_from_record(box)
        for name, box in (record.get("level_boxes") or {}).items()
    }
    return RecognizedWord(
        text=str(record["text"]),
        bbox=_box_from_record(record["bbox"]),
        confidence=max(float(record.get("confidence", 0.0)), 0.0),
        font=FontAttributes(**font_data),
        language=record.get("language"),
        paragraph_is_ltr=bool(record.get("paragraph_is_ltr", True)),
        direction=WritingDirection(record.get("direction", WritingDirection.LEFT_TO_RIGHT.value)),
        from_dictionary=bool(record.get("from_dictionary", False)),
        numeric=bool(record.get("numeric", False)),
        starts=frozenset(Level(name) for name in record.get("starts", [])),
        ends=frozenset(Level(name) for name in record.get("ends", [])),
        level_boxes=level_boxes,
    )


def words_from_records(records: Iterable[Dict[str, Any]]) -> List[RecognizedWord]:
    """
    Build words from explicit records.

    Each record needs ``text`` and ``bbox`` (``[left, top, right, bottom]`` or
    a dict); ``starts``/``ends`` list level names such as ``"line"``.

    Raises:
        WordSourceError: If a record is missing fields or has invalid values
    """
    words = []
    for i, record in enumerate(records):
        try:
            words.append(_word_from_record(record))
        except (KeyError, TypeError, ValueError) as e:
            raise WordSourceError(f"Invalid word record {i}: {e}", record_index=i) from e
    return words


def words_from_json(path: PathLike) -> List[RecognizedWord]:
    """Load words from a JSON file holding a list of records or ``{"words": [...]}``."""
    path = Path(path)
    try:
        with path.open('r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise WordSourceError(f"Cannot read word records from {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("words", [])
    if not isinstance(data, list):
        raise WordSourceError(f"Expected a list of word records in {path}")
    return words_from_records(data)


def load_words(path: PathLike, language: Optional[str] = None) -> List[RecognizedWord]:
    """Load words from a ``.json`` record file or a Tesseract ``.tsv`` file."""
    path = Path(path)
    if path.suffix.lower() == ".json":
        return words_from_json(path)
    try:
        text = path.read_text(encoding='utf-8')
    except OSError as e:
        raise WordSourceError(f"Cannot read TSV from {path}: {e}") from e
    return words_from_tsv(text, language=language)


def run_tesseract_tsv(
    image_path: PathLike,
    language: str = "eng",
    psm: Optional[int] = None,
    timeout_s: float = 120.0,
) -> str:
    """
    Run the ``tesseract`` command line tool and return its TSV output.

    Raises:
        WordSourceError: If tesseract is missing, times out or fails
    """
    image_path = Path(image_path)
    cmd = ["tesseract", str(image_path), "stdout", "-l", language]
    if psm is not None:
        cmd.extend(["--psm", str(psm)])
    cmd.append("tsv")

    logger.debug(f"Running {' '.join(cmd)}")
    try:
        proc = subprocess.run(cmd, check=False, capture_output=True, text=True, timeout=timeout_s)
    except FileNotFoundError as e:
        raise WordSourceError("tesseract binary not found on PATH",
                              image_path=str(image_path)) from e
    except subprocess.TimeoutExpired as e:
        raise WordSourceError(f"tesseract timed out after {timeout_s}s",
                              image_path=str(image_path)) from e

    if proc.returncode != 0:
        raise WordSourceError(
            "tesseract returned a non-zero exit code",
            image_path=str(image_path),
            returncode=proc.returncode,
            stderr=proc.stderr[-2000:],
        )
    return proc.stdout
