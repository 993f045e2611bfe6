from __future__ import annotations

import os
from pathlib import Path

import pytest

from code_to_docx import walker
from code_to_docx.errors import ConversionError
from code_to_docx.walker import iter_source_files, matches_extension

from conftest import write_tree


def relative(paths, root: Path) -> list[str]:
    return [p.relative_to(root).as_posix() for p in paths]


def test_matches_extension_is_case_insensitive() -> None:
    accepted = {"rs", "py"}
    assert matches_extension(Path("X.RS"), accepted)
    assert matches_extension(Path("dir/tool.Py"), accepted)
    assert not matches_extension(Path("notes.md"), accepted)


def test_matches_extension_skips_empty_extensions() -> None:
    accepted = {"", "rs"}
    assert not matches_extension(Path("Makefile"), accepted)
    assert not matches_extension(Path(".bashrc"), accepted)
    assert not matches_extension(Path("trailing."), accepted)


def test_walk_filters_and_recurses(source_root: Path) -> None:
    write_tree(
        source_root,
        {
            "a.RS": "fn main() {}",
            "b.txt": "text",
            "LICENSE": "mit",
            "sub/deeper/x.py": "print(1)",
            "sub/deeper/y.js": "1",
        },
    )
    found = relative(iter_source_files(source_root, ["rs", "py"]), source_root)
    assert found == ["a.RS", "sub/deeper/x.py"]


def test_walk_sorted_order_is_depth_first(source_root: Path) -> None:
    write_tree(
        source_root,
        {
            "c.py": "",
            "a.py": "",
            "b/z.py": "",
            "b/a/inner.py": "",
        },
    )
    found = relative(iter_source_files(source_root, ["py"]), source_root)
    assert found == ["a.py", "b/a/inner.py", "b/z.py", "c.py"]


def test_walk_unsorted_yields_same_files(source_root: Path) -> None:
    write_tree(source_root, {"c.py": "", "a.py": "", "b/z.py": ""})
    found = relative(iter_source_files(source_root, ["py"], sort_entries=False), source_root)
    assert sorted(found) == ["a.py", "b/z.py", "c.py"]


def test_walk_accepts_dotted_and_uppercase_extensions(source_root: Path) -> None:
    write_tree(source_root, {"main.rs": "", "lib.py": ""})
    found = relative(iter_source_files(source_root, [".RS"]), source_root)
    assert found == ["main.rs"]


def test_walk_missing_root_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(ConversionError) as exc:
        list(iter_source_files(tmp_path / "missing", ["py"]))
    assert exc.value.code == "LIST_FAILED"


def test_walk_unlistable_subdirectory_is_fatal(source_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    write_tree(source_root, {"a.py": "", "locked/b.py": ""})
    real_scandir = os.scandir
    locked = source_root / "locked"

    def fake_scandir(path):
        if Path(path) == locked:
            raise PermissionError(13, "Permission denied", str(path))
        return real_scandir(path)

    monkeypatch.setattr(walker.os, "scandir", fake_scandir)
    with pytest.raises(ConversionError) as exc:
        list(iter_source_files(source_root, ["py"]))
    assert exc.value.code == "LIST_FAILED"
    assert "locked" in str(exc.value)


def test_walk_skips_entries_that_cannot_be_stat(source_root: Path) -> None:
    write_tree(source_root, {"good.py": ""})
    try:
        os.symlink(source_root / "missing.py", source_root / "broken.py")
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not available")
    warnings: list[str] = []
    found = relative(iter_source_files(source_root, ["py"], on_warning=warnings.append), source_root)
    assert found == ["good.py"]
    assert len(warnings) == 1
    assert "broken.py" in warnings[0]


def test_walk_skips_symlink_cycles(source_root: Path) -> None:
    write_tree(source_root, {"a.py": "", "sub/b.py": ""})
    try:
        os.symlink(source_root, source_root / "sub" / "loop", target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not available")
    warnings: list[str] = []
    found = relative(iter_source_files(source_root, ["py"], on_warning=warnings.append), source_root)
    assert found == ["a.py", "sub/b.py"]
    assert any("cycle" in message for message in warnings)


@pytest.mark.skipif(os.name == "nt", reason="path length limits")
def test_walk_handles_nesting_deeper_than_recursion_limit(tmp_path: Path) -> None:
    deep = tmp_path
    for _ in range(1200):
        deep = deep / "d"
        deep.mkdir()
    leaf = deep / "leaf.py"
    leaf.write_text("x", encoding="utf-8")
    try:
        found = list(iter_source_files(tmp_path, ["py"]))
        assert found == [leaf]
    finally:
        # shutil.rmtree recurses per level; unwind by hand.
        leaf.unlink()
        while deep != tmp_path:
            deep.rmdir()
            deep = deep.parent
