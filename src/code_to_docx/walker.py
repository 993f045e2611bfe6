from __future__ import annotations

import os
import stat
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from .config import normalize_extensions
from .errors import ConversionError
from .logging import get_logger

log = get_logger("walker")

WarningCallback = Callable[[str], None]


@dataclass(slots=True)
class _Frame:
    entries: Iterator[os.DirEntry[str]]
    key: tuple[int, int]


def matches_extension(path: Path, accepted: Iterable[str]) -> bool:
    extension = path.suffix[1:].lower()
    if not extension:
        return False
    return extension in accepted


def _list_directory(path: Path, sort_entries: bool) -> Iterator[os.DirEntry[str]]:
    try:
        with os.scandir(path) as iterator:
            entries = list(iterator)
    except OSError as exc:
        raise ConversionError("LIST_FAILED", f"Cannot list directory {path}: {exc.strerror or exc}") from exc
    if sort_entries:
        entries.sort(key=lambda entry: entry.name)
    return iter(entries)


def _directory_key(path: Path) -> tuple[int, int]:
    try:
        info = os.stat(path)
    except OSError as exc:
        raise ConversionError("LIST_FAILED", f"Cannot list directory {path}: {exc.strerror or exc}") from exc
    return info.st_dev, info.st_ino


def iter_source_files(
    root: Path,
    extensions: Iterable[str],
    *,
    sort_entries: bool = True,
    on_warning: WarningCallback | None = None,
) -> Iterator[Path]:
    """Yield every file under ``root`` whose extension is accepted.

    Files come out depth-first, a directory's contents at the point the
    directory itself is met. An explicit stack replaces recursion so deep
    trees cannot hit the interpreter recursion limit.

    Failure to list a directory raises ``ConversionError``. Failure to stat a
    single entry is logged and that entry is skipped.
    """

    accepted = frozenset(normalize_extensions(extensions))
    stack = [_Frame(_list_directory(root, sort_entries), _directory_key(root))]

    def warn(message: str) -> None:
        log.warning(message)
        if on_warning is not None:
            on_warning(message)

    while stack:
        entry = next(stack[-1].entries, None)
        if entry is None:
            stack.pop()
            continue
        path = Path(entry.path)
        try:
            info = entry.stat()
        except OSError as exc:
            warn(f"Skipping {path}: {exc.strerror or exc}")
            continue

        if stat.S_ISDIR(info.st_mode):
            # DirEntry.stat() leaves st_ino zeroed on Windows; ask the path.
            key = _directory_key(path)
            if any(frame.key == key for frame in stack):
                warn(f"Skipping {path}: directory cycle")
                continue
            stack.append(_Frame(_list_directory(path, sort_entries), key))
            continue

        if matches_extension(path, accepted):
            log.debug("Matched %s", path)
            yield path


__all__ = ["iter_source_files", "matches_extension"]
