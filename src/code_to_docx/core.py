from __future__ import annotations

import os
import re
import tempfile
import time
from collections.abc import Callable
from pathlib import Path

from .config import AppConfig, ReadErrorPolicy, StyleConfig, validate_paths
from .document import CODE_FONT_FAMILY, DocumentBuilder, DocxDocumentBuilder, new_document
from .errors import FILE_ERROR_CODES, ConversionError
from .logging import get_logger
from .models import ConversionResult, SourceFile, StageTimings
from .walker import iter_source_files

BuilderFactory = Callable[[], DocumentBuilder]

log = get_logger("core")

# Characters lxml refuses to serialise into a text node.
_XML_ILLEGAL_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def split_lines(text: str) -> list[str]:
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def read_source(path: Path, encoding: str = "utf-8") -> str:
    try:
        with path.open("r", encoding=encoding, newline="") as handle:
            return handle.read()
    except UnicodeDecodeError as exc:
        raise ConversionError("DECODE_FAILED", f"{path} is not valid {encoding} text") from exc
    except OSError as exc:
        raise ConversionError("READ_FAILED", f"Cannot read {path}: {exc.strerror or exc}") from exc


def load_source_file(root: Path, path: Path, encoding: str = "utf-8") -> SourceFile:
    try:
        relative = path.relative_to(root)
    except ValueError as exc:
        raise ConversionError("OUTSIDE_ROOT", f"{path} is not inside {root}") from exc
    lines = split_lines(read_source(path, encoding))
    for number, line in enumerate(lines, start=1):
        if _XML_ILLEGAL_RE.search(line):
            raise ConversionError("INVALID_TEXT", f"{path}:{number} contains control characters")
    return SourceFile(path=path, relative_path=relative, lines=lines)


def process_file(
    builder: DocumentBuilder,
    root: Path,
    path: Path,
    *,
    style: StyleConfig,
    encoding: str = "utf-8",
) -> SourceFile:
    """Append one page for ``path``: a page-break heading and its code table.

    The file is fully read and checked before anything is appended, so a
    failure leaves the document unchanged.
    """

    source = load_source_file(root, path, encoding)
    builder.add_heading(source.heading, level=2, page_break_before=True)
    builder.add_code_table(source.lines, font_size=style.code_font_size, font_family=CODE_FONT_FAMILY)
    return source


def save_document(builder: DocumentBuilder, output_path: Path) -> None:
    tmp_path: Path | None = None
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "wb", delete=False, dir=output_path.parent, prefix=".", suffix=".docx.tmp"
        ) as tmp:
            tmp_path = Path(tmp.name)
            builder.save(tmp)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, output_path)
    except OSError as exc:
        raise ConversionError("WRITE_FAILED", f"Cannot write {output_path}: {exc.strerror or exc}") from exc
    finally:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)


class ConversionService:
    def __init__(self, config: AppConfig, builder_factory: BuilderFactory = DocxDocumentBuilder) -> None:
        self._config = config
        self._builder_factory = builder_factory

    def convert(self) -> ConversionResult:
        config = self._config
        validate_paths(config)

        warnings: list[str] = []
        result = ConversionResult(output_path=config.output_path, pages=[], warnings=warnings)
        builder = new_document(config.style, self._builder_factory())

        scan_start = time.perf_counter()
        files = iter_source_files(
            config.input_dir,
            config.scan.extensions,
            sort_entries=config.scan.sort_entries,
            on_warning=warnings.append,
        )
        for path in files:
            source = self._process(builder, path, warnings)
            if source is None:
                continue
            result.pages.append(source.heading)
            result.line_counts[source.heading] = len(source.lines)
        scan_elapsed = (time.perf_counter() - scan_start) * 1000

        write_start = time.perf_counter()
        save_document(builder, config.output_path)
        write_elapsed = (time.perf_counter() - write_start) * 1000

        result.timings = StageTimings(scan_ms=scan_elapsed, write_ms=write_elapsed)
        log.debug("%s", result.summary)
        return result

    def _process(self, builder: DocumentBuilder, path: Path, warnings: list[str]) -> SourceFile | None:
        scan = self._config.scan
        try:
            source = process_file(
                builder,
                self._config.input_dir,
                path,
                style=self._config.style,
                encoding=scan.encoding,
            )
        except ConversionError as exc:
            if scan.on_read_error is ReadErrorPolicy.SKIP and exc.code in FILE_ERROR_CODES:
                message = f"Skipping {path}: {exc}"
                log.warning(message)
                warnings.append(message)
                return None
            raise
        log.debug("Added %s (%d lines)", source.heading, len(source.lines))
        return source


__all__ = [
    "ConversionError",
    "ConversionService",
    "load_source_file",
    "process_file",
    "read_source",
    "save_document",
    "split_lines",
]
