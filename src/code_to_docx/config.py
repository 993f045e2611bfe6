from __future__ import annotations

import codecs
import tomllib
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping

from .errors import ConversionError


DEFAULT_EXTENSIONS: tuple[str, ...] = ("rs", "py", "js", "ts", "html", "css", "scss", "md", "txt")
DEFAULT_OUTPUT = Path("output.docx")


class ReadErrorPolicy(str, Enum):
    ABORT = "abort"
    SKIP = "skip"


@dataclass(frozen=True, slots=True)
class ScanConfig:
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    sort_entries: bool = True
    on_read_error: ReadErrorPolicy = ReadErrorPolicy.ABORT
    encoding: str = "utf-8"


@dataclass(frozen=True, slots=True)
class StyleConfig:
    code_font_size: int = 8
    heading_font_size: int = 12
    heading_font_family: str = "Calibri Light"


@dataclass(frozen=True, slots=True)
class AppConfig:
    input_dir: Path
    output_path: Path = DEFAULT_OUTPUT
    overwrite: bool = False
    scan: ScanConfig = field(default_factory=ScanConfig)
    style: StyleConfig = field(default_factory=StyleConfig)

    def with_overrides(
        self,
        *,
        output_path: Path | None = None,
        overwrite: bool | None = None,
        extensions: Iterable[str] | None = None,
        sort_entries: bool | None = None,
        on_read_error: ReadErrorPolicy | None = None,
        code_font_size: int | None = None,
        heading_font_size: int | None = None,
        heading_font_family: str | None = None,
    ) -> AppConfig:
        """Return a copy with every non-``None`` value applied."""

        scan_changes: dict[str, Any] = {}
        if extensions is not None:
            scan_changes["extensions"] = normalize_extensions(extensions)
        if sort_entries is not None:
            scan_changes["sort_entries"] = sort_entries
        if on_read_error is not None:
            scan_changes["on_read_error"] = ReadErrorPolicy(on_read_error)

        style_changes: dict[str, Any] = {}
        if code_font_size is not None:
            style_changes["code_font_size"] = _positive_int("code_font_size", code_font_size)
        if heading_font_size is not None:
            style_changes["heading_font_size"] = _positive_int("heading_font_size", heading_font_size)
        if heading_font_family is not None:
            style_changes["heading_font_family"] = heading_font_family

        top_changes: dict[str, Any] = {}
        if output_path is not None:
            top_changes["output_path"] = output_path
        if overwrite is not None:
            top_changes["overwrite"] = overwrite
        return replace(
            self,
            scan=replace(self.scan, **scan_changes),
            style=replace(self.style, **style_changes),
            **top_changes,
        )


def normalize_extensions(values: Iterable[str]) -> tuple[str, ...]:
    """Lowercase, strip leading dots, split on commas and drop duplicates."""

    if isinstance(values, str):
        values = (values,)
    seen: dict[str, None] = {}
    for value in values:
        for part in str(value).split(","):
            cleaned = part.strip().lstrip(".").lower()
            if cleaned:
                seen.setdefault(cleaned, None)
    return tuple(seen)


def validate_paths(config: AppConfig) -> None:
    if not config.input_dir.exists():
        raise ConversionError("INPUT_NOT_FOUND", f"Input directory does not exist: {config.input_dir}")
    if not config.input_dir.is_dir():
        raise ConversionError("INPUT_NOT_DIRECTORY", f"Input path is not a directory: {config.input_dir}")
    if not config.overwrite and config.output_path.exists():
        raise ConversionError("OUTPUT_EXISTS", f"Output file already exists: {config.output_path}")


def _positive_int(name: str, value: object) -> int:
    if isinstance(value, bool):
        raise ConversionError("INVALID_CONFIG", f"{name} must be an integer, got {value!r}")
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConversionError("INVALID_CONFIG", f"{name} must be an integer, got {value!r}") from exc
    if number < 1:
        raise ConversionError("INVALID_CONFIG", f"{name} must be at least 1, got {number}")
    return number


def _bool(name: str, value: object) -> bool:
    if not isinstance(value, bool):
        raise ConversionError("INVALID_CONFIG", f"{name} must be true or false, got {value!r}")
    return value


def _encoding(value: object) -> str:
    name = str(value)
    try:
        codecs.lookup(name)
    except LookupError as exc:
        raise ConversionError("INVALID_CONFIG", f"Unknown encoding: {name!r}") from exc
    return name


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.is_file():
        raise ConversionError("INVALID_CONFIG", f"Config file not found: {path}")
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConversionError("INVALID_CONFIG", f"Invalid config file {path}: {exc}") from exc


def _table(raw: Mapping[str, object], name: str) -> Mapping[str, object] | None:
    data = raw.get(name)
    if data is None:
        return None
    if not isinstance(data, Mapping):
        raise ConversionError("INVALID_CONFIG", f"[{name}] must be a table")
    return data


def _build_scan(data: Mapping[str, object] | None) -> ScanConfig:
    if not data:
        return ScanConfig()
    extensions = data.get("extensions", DEFAULT_EXTENSIONS)
    if isinstance(extensions, str) or not isinstance(extensions, Iterable):
        extensions = [str(extensions)]
    policy = str(data.get("on_read_error", ReadErrorPolicy.ABORT.value))
    try:
        on_read_error = ReadErrorPolicy(policy)
    except ValueError as exc:
        raise ConversionError("INVALID_CONFIG", f"Unsupported on_read_error value: {policy!r}") from exc
    return ScanConfig(
        extensions=normalize_extensions(extensions),
        sort_entries=_bool("sort_entries", data.get("sort_entries", True)),
        on_read_error=on_read_error,
        encoding=_encoding(data.get("encoding", "utf-8")),
    )


def _build_style(data: Mapping[str, object] | None) -> StyleConfig:
    if not data:
        return StyleConfig()
    return StyleConfig(
        code_font_size=_positive_int("code_font_size", data.get("code_font_size", 8)),
        heading_font_size=_positive_int("heading_font_size", data.get("heading_font_size", 12)),
        heading_font_family=str(data.get("heading_font_family", "Calibri Light")),
    )


def load_config(path: Path | None, *, input_dir: Path) -> AppConfig:
    if path is None:
        return AppConfig(input_dir=input_dir)
    raw = _read_toml(path)
    return AppConfig(
        input_dir=input_dir,
        output_path=Path(str(raw.get("output", DEFAULT_OUTPUT))),
        overwrite=_bool("overwrite", raw.get("overwrite", False)),
        scan=_build_scan(_table(raw, "scan")),
        style=_build_style(_table(raw, "style")),
    )


__all__ = [
    "AppConfig",
    "DEFAULT_EXTENSIONS",
    "ReadErrorPolicy",
    "ScanConfig",
    "StyleConfig",
    "load_config",
    "normalize_extensions",
    "validate_paths",
]
