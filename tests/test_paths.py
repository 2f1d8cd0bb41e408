"""Input discovery, common root and display names."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from foolhtml.foolhtml import (
    BundleError,
    common_root,
    discover_files,
    display_name,
    read_files,
)


def _touch(path: Path, text: str = "x") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_direct_files_come_before_directory_contents(tmp_path: Path) -> None:
    _touch(tmp_path / "dir" / "b.txt")
    _touch(tmp_path / "dir" / "a.txt")
    _touch(tmp_path / "dir" / "sub" / "c.txt")
    direct = _touch(tmp_path / "other" / "z.txt")

    files, warnings = discover_files([tmp_path / "dir", direct])

    assert files == [
        direct,
        tmp_path / "dir" / "a.txt",
        tmp_path / "dir" / "b.txt",
        tmp_path / "dir" / "sub" / "c.txt",
    ]
    assert warnings == []


def test_hidden_files_are_skipped_inside_directories(tmp_path: Path) -> None:
    _touch(tmp_path / "dir" / "shown.txt")
    _touch(tmp_path / "dir" / ".hidden")
    _touch(tmp_path / "dir" / ".git" / ".keep")

    files, _ = discover_files([tmp_path / "dir"])

    assert files == [tmp_path / "dir" / "shown.txt"]


def test_hidden_directories_are_still_walked(tmp_path: Path) -> None:
    _touch(tmp_path / "dir" / ".cache" / "notes.txt")
    _touch(tmp_path / "dir" / ".git" / "config")
    _touch(tmp_path / "dir" / "z.txt")

    files, _ = discover_files([tmp_path / "dir"])

    assert files == [
        tmp_path / "dir" / ".cache" / "notes.txt",
        tmp_path / "dir" / ".git" / "config",
        tmp_path / "dir" / "z.txt",
    ]


def _unreadable_dirs(monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(path="."):
        raise PermissionError(13, "Permission denied", str(path))

    monkeypatch.setattr(os, "scandir", boom)


def test_unreadable_directory_fails_by_default(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    d = tmp_path / "locked"
    d.mkdir()
    _unreadable_dirs(monkeypatch)
    with pytest.raises(BundleError, match="error walking directory"):
        discover_files([d])


def test_unreadable_directory_can_be_skipped(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    d = tmp_path / "locked"
    d.mkdir()
    f = _touch(tmp_path / "a.txt")
    _unreadable_dirs(monkeypatch)

    files, warnings = discover_files([d, f], skip_missing=True)

    assert files == [f]
    assert len(warnings) == 1
    assert "error walking directory" in warnings[0]
    assert "Permission denied" in caplog.text


def test_hidden_file_given_directly_is_kept(tmp_path: Path) -> None:
    hidden = _touch(tmp_path / ".env")
    files, _ = discover_files([hidden])
    assert files == [hidden]


def test_duplicates_are_dropped(tmp_path: Path) -> None:
    f = _touch(tmp_path / "dir" / "a.txt")
    files, _ = discover_files([f, str(f), tmp_path / "dir"])
    assert files == [f]


def test_relative_inputs_become_absolute(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _touch(tmp_path / "a.txt")
    monkeypatch.chdir(tmp_path)
    files, _ = discover_files(["a.txt"])
    assert files == [tmp_path / "a.txt"]
    assert files[0].is_absolute()


def test_excluded_paths_are_not_collected(tmp_path: Path) -> None:
    keep = _touch(tmp_path / "keep.txt")
    out = _touch(tmp_path / "out.html")
    files, _ = discover_files([tmp_path], exclude=[out])
    assert files == [keep]


def test_no_inputs_is_fatal() -> None:
    with pytest.raises(BundleError, match="no input paths"):
        discover_files([])


def test_missing_input_fails_by_default(tmp_path: Path) -> None:
    with pytest.raises(BundleError, match="does-not-exist"):
        discover_files([tmp_path / "does-not-exist"])


def test_missing_input_can_be_skipped(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    f = _touch(tmp_path / "a.txt")
    files, warnings = discover_files([tmp_path / "nope", f], skip_missing=True)
    assert files == [f]
    assert len(warnings) == 1
    assert "nope" in warnings[0]
    assert "nope" in caplog.text


def test_unreadable_file_policy(tmp_path: Path) -> None:
    gone = tmp_path / "gone.txt"
    with pytest.raises(BundleError, match="gone.txt"):
        read_files([gone])

    warnings: list = []
    kept = _touch(tmp_path / "kept.txt", "kept")
    files = read_files([gone, kept], skip_missing=True, warnings=warnings)
    assert [f.path for f in files] == [kept]
    assert files[0].data == b"kept"
    assert "gone.txt" in warnings[0]


@pytest.mark.skipif(os.name == "nt", reason="POSIX paths")
def test_common_root_of_sibling_directories() -> None:
    paths = [Path("/proj/a/x.html"), Path("/proj/b/y.html")]
    root = common_root(paths)
    assert root == Path("/proj")
    assert [display_name(p, root) for p in paths] == ["a/x.html", "b/y.html"]


@pytest.mark.skipif(os.name == "nt", reason="POSIX paths")
def test_common_root_compares_whole_components() -> None:
    assert common_root([Path("/proj/ab/x"), Path("/proj/a/y")]) == Path("/proj")


@pytest.mark.skipif(os.name == "nt", reason="POSIX paths")
def test_common_root_nested_and_disjoint() -> None:
    assert common_root([Path("/proj/a/x"), Path("/proj/a/b/y")]) == Path("/proj/a")
    assert common_root([Path("/proj/a/b/y"), Path("/proj/a/x")]) == Path("/proj/a")
    assert common_root([Path("/one/x"), Path("/two/y")]) == Path("/")


def test_common_root_of_single_file(tmp_path: Path) -> None:
    f = _touch(tmp_path / "dir" / "x.txt")
    root = common_root([f])
    assert root == tmp_path / "dir"
    assert display_name(f, root) == "x.txt"


def test_display_name_falls_back_to_base_name(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(path, start=None):
        raise ValueError("path is on mount 'D:', start on mount 'C:'")

    monkeypatch.setattr(os.path, "relpath", boom)
    assert display_name(tmp_path / "deep" / "name.txt", tmp_path) == "name.txt"
