"""Page structure pipeline: table detection, word loading, assembly and rendering."""

import argparse
import json
import sys
import time
import traceback
from dataclasses import dataclass, field
from functools import partial
from multiprocessing import Pool, cpu_count
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union
import logging

import numpy as np
from tqdm import tqdm

from .assembler import ContainerType, EventKind, StructureEvent, StructuredDocumentAssembler
from .config import (
    Config, LogLevel, OutputFormat, apply_overrides, get_default_config, load_config,
)
from .exceptions import ConfigurationError, ImageUnreadableError
from .models import BoundingBox, RecognizedWord, TableRegion
from .processors import TableDetectionProcessor, expand_image_paths, load_image
from .render import document_footer, document_header, events_to_json, render_page_xhtml
from .utils.logging_utils import (
    RunStats, configure_opencv_logging, log_processing_stats, setup_logging,
)
from .word_sources import load_words, run_tesseract_tsv, words_from_tsv

logger = logging.getLogger(__name__)


@dataclass
class PageJob:
    """One page to process.

    Words are taken from ``words`` if given, else loaded from ``words_path``,
    else produced by running tesseract on the image.
    """

    image_path: Path
    page_number: int = 0
    words: Optional[List[RecognizedWord]] = None
    words_path: Optional[Path] = None


@dataclass
class PageResult:
    """Assembled structure of one page."""

    page_number: int
    image_path: Path
    tables: List[TableRegion] = field(default_factory=list)
    events: List[StructureEvent] = field(default_factory=list)
    page_box: Optional[BoundingBox] = None

    @property
    def word_count(self) -> int:
        return sum(
            1 for e in self.events
            if e.container == ContainerType.WORD and e.kind == EventKind.OPEN
        )


# Module-level worker function for multiprocessing
def _process_page_worker(
    job: PageJob, config: Config
) -> Tuple[PageJob, Optional[PageResult], Optional[str], float]:
    """Process one page in a worker process.

    Returns:
        Tuple of (job, result, error_message, elapsed_time)
    """
    start_time = time.time()
    try:
        pipeline = PageStructurePipeline(config)
        result = pipeline.process_page(
            job.image_path, words=job.words, page_number=job.page_number, words_path=job.words_path
        )
        return (job, result, None, time.time() - start_time)
    except Exception as e:
        error_msg = f"Error processing {job.image_path}: {e}\n{traceback.format_exc()}"
        return (job, None, error_msg, time.time() - start_time)


class PageStructurePipeline:
    """Detect tables on page images and assemble their words into structure events."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_default_config()
        self.detector = TableDetectionProcessor(self.config)

    def detect(self, image: Union[np.ndarray, str, Path]) -> List[TableRegion]:
        """Detect tables in an image array or image file."""
        if isinstance(image, np.ndarray):
            tables = self.detector.process(image)
        else:
            tables = self.detector.process_file(Path(image))
            self._save_debug_images(Path(image).stem)
        return tables

    def _save_debug_images(self, prefix: str) -> None:
        if self.config.save_debug_images and self.config.debug_dir:
            self.detector.save_debug_images_to_dir(Path(self.config.debug_dir), prefix=prefix)

    def load_page_words(
        self, image_path: Path, words_path: Optional[Path] = None
    ) -> List[RecognizedWord]:
        """Load words from ``words_path`` or recognize them with tesseract."""
        settings = self.config.words
        if words_path is not None:
            return load_words(words_path, language=settings.language)
        tsv = run_tesseract_tsv(
            image_path, language=settings.language, psm=settings.psm, timeout_s=settings.timeout_s
        )
        return words_from_tsv(tsv, language=settings.language)

    def process_page(
        self,
        image_path: Union[str, Path],
        words: Optional[Sequence[RecognizedWord]] = None,
        page_number: int = 0,
        words_path: Optional[Path] = None,
    ) -> PageResult:
        """
        Detect tables on one page and assemble its words.

        An unreadable image degrades to a page without tables; the words are
        still assembled into blocks, paragraphs and lines.

        Args:
            image_path: Page image
            words: Recognized words in stream order
            page_number: 0-based page number
            words_path: TSV or JSON word file used when ``words`` is None

        Returns:
            PageResult with tables and events
        """
        image_path = Path(image_path)
        page_box = None
        tables: List[TableRegion] = []

        try:
            image = load_image(image_path)
        except ImageUnreadableError as e:
            logger.warning(f"{e}; assembling page without table detection")
        else:
            height, width = image.shape[:2]
            page_box = BoundingBox(0, 0, width, height)
            tables = self.detector.process(image)
            self._save_debug_images(image_path.stem)

        if words is None:
            words = self.load_page_words(image_path, words_path)

        assembler = StructuredDocumentAssembler(tables, page_number, self.config.assembly)
        events = assembler.assemble(words)

        logger.info(
            f"Page {page_number + 1} ({image_path.name}): "
            f"{len(tables)} table(s), {len(words)} word(s), {len(events)} event(s)"
        )
        return PageResult(page_number, image_path, tables, events, page_box)

    def process_batch(
        self,
        jobs: Sequence[PageJob],
        workers: Optional[int] = None,
        show_progress: bool = False,
    ) -> List[PageResult]:
        """
        Process independent pages, in parallel when ``workers`` > 1.

        Failed pages are logged and left out of the result. The progress bar
        is only drawn when stderr is a terminal.

        Returns:
            Results of the successful pages in job order
        """
        if not jobs:
            return []

        if workers is None:
            workers = 1
        elif workers <= 0:
            workers = max(1, cpu_count() - 1)

        process_func = partial(_process_page_worker, config=self.config)
        results: List[PageResult] = []
        progress = tqdm(
            total=len(jobs), desc="Pages", unit="page", file=sys.stderr,
            disable=not (show_progress and sys.stderr.isatty()),
        )
        operation = f"structure extraction of {len(jobs)} page(s)"
        with log_processing_stats(operation, logger) as stats, progress:
            if workers == 1:
                self._collect(map(process_func, jobs), stats, progress, results)
            else:
                with Pool(processes=min(workers, len(jobs))) as pool:
                    self._collect(pool.imap(process_func, jobs), stats, progress, results)

        return results

    @staticmethod
    def _collect(outcomes, stats: RunStats, progress: tqdm, results: List[PageResult]) -> None:
        for job, result, error_msg, elapsed in outcomes:
            progress.update(1)
            if error_msg:
                stats.pages_failed += 1
                logger.error(error_msg)
                continue
            stats.pages_processed += 1
            stats.tables += len(result.tables)
            stats.words += result.word_count
            logger.debug(f"{job.image_path.name} done in {elapsed:.2f}s")
            results.append(result)

    def render(self, results: Sequence[PageResult], output_format: Optional[str] = None) -> str:
        """Render page results as one XHTML document or a JSON document."""
        output_format = output_format or self.config.output.format
        font_info = self.config.assembly.font_info

        if output_format == OutputFormat.JSON:
            pages = [
                {
                    "image": str(result.image_path),
                    "page_box": list(result.page_box.as_tuple()) if result.page_box else None,
                    **events_to_json(result.events, result.tables, result.page_number),
                }
                for result in results
            ]
            return json.dumps({"pages": pages}, indent=2, ensure_ascii=False)

        parts = [document_header(self.config.output.title, font_info)]
        for result in results:
            parts.append(render_page_xhtml(
                result.events,
                page_number=result.page_number,
                image_name=result.image_path.name,
                page_box=result.page_box,
                font_info=font_info,
            ))
        parts.append(document_footer())
        return "".join(parts)


def main() -> None:
    """Command line interface."""
    parser = argparse.ArgumentParser(
        description="Assemble OCR words into blocks, paragraphs and ruled tables"
    )
    parser.add_argument(
        "images", nargs="+", help="Page image files, one page each, or directories of images"
    )
    parser.add_argument(
        "--words", action="append",
        help="Word file (Tesseract .tsv or .json records) per image, in image order. "
             "Without it tesseract is run on each image."
    )
    parser.add_argument("--config", help="Configuration file (JSON, YAML or TOML)")
    parser.add_argument("--format", choices=[f.value for f in OutputFormat], help="Output format")
    parser.add_argument("-o", "--output", help="Output file (default: stdout)")
    parser.add_argument("--workers", type=int, help="Number of worker processes (0 = all cores)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--debug", action="store_true", help="Save intermediate line masks")
    parser.add_argument("--debug-dir", help="Directory for intermediate line masks")

    args = parser.parse_args()

    try:
        config = load_config(args.config) if args.config else get_default_config()
        overrides = {"output.format": args.format}
        if args.debug:
            overrides["save_debug_images"] = True
            overrides["debug_dir"] = args.debug_dir or config.debug_dir or "debug"
        config = apply_overrides(config, overrides)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    level_name = "DEBUG" if args.verbose else LogLevel(config.logging.level).value
    setup_logging(
        level=level_name,
        log_file=config.logging.log_file,
        use_rich=config.logging.use_rich,
        format_style=config.logging.format_style,
    )
    configure_opencv_logging(getattr(logging, level_name))

    images = expand_image_paths(args.images)
    words_files = args.words or []
    if words_files and len(words_files) != len(images):
        print("Error: --words must be given once per image", file=sys.stderr)
        sys.exit(1)

    jobs = [
        PageJob(
            image_path=image,
            page_number=i,
            words_path=Path(words_files[i]) if words_files else None,
        )
        for i, image in enumerate(images)
    ]

    pipeline = PageStructurePipeline(config)
    results = pipeline.process_batch(jobs, workers=args.workers, show_progress=True)
    if not results:
        logger.error("No pages could be processed")
        sys.exit(1)

    output = pipeline.render(results)
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(output, encoding="utf-8")
        logger.info(f"Wrote {len(results)} page(s) to {output_path}")
    else:
        sys.stdout.write(output)


if __name__ == "__main__":
    main()
