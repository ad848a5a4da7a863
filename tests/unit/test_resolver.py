"""Unit tests for containment-checked path resolution."""

import logging
from pathlib import Path

import pytest

from finder.volume.errors import NotFound, PathEscape
from finder.volume.resolver import is_contained, resolve
from finder.volume.types import Volume


def test_resolve_empty_path_is_volume_root(volume: Volume) -> None:
    """An empty request addresses the volume root itself."""
    assert resolve(volume, "") == volume.root
    assert resolve(volume, "/") == volume.root


def test_resolve_nested_path_that_does_not_exist_yet(volume: Volume) -> None:
    """Missing entries still resolve while their canonical form stays inside."""
    assert resolve(volume, "docs/new.txt") == volume.root / "docs" / "new.txt"


def test_resolve_treats_absolute_looking_input_as_relative(volume: Volume) -> None:
    """A leading slash never reaches the real filesystem root."""
    assert resolve(volume, "/etc/passwd") == volume.root / "etc" / "passwd"


def test_resolve_rejects_parent_traversal(volume: Volume) -> None:
    """Dot-dot segments that climb above the root are rejected."""
    with pytest.raises(PathEscape):
        resolve(volume, "../../etc")


def test_resolve_rejects_traversal_hidden_behind_a_subdirectory(
    volume: Volume,
) -> None:
    """Traversal is judged on the canonical form, not on the raw text."""
    (volume.root / "docs").mkdir()
    with pytest.raises(PathEscape):
        resolve(volume, "docs/../../..")


def test_resolve_allows_dot_dot_that_stays_inside(volume: Volume) -> None:
    """Dot-dot is fine as long as the result is still under the root."""
    (volume.root / "a").mkdir()
    assert resolve(volume, "a/../b") == volume.root / "b"


def test_resolve_rejects_nul_bytes(volume: Volume) -> None:
    """NUL bytes are refused before touching the filesystem."""
    with pytest.raises(PathEscape):
        resolve(volume, "name\x00.txt")


def test_resolve_rejects_symlink_pointing_outside(
    volume: Volume, tmp_path: Path
) -> None:
    """A symlink inside the volume cannot be used as a way out."""
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "secret.txt").write_text("secret")
    (volume.root / "exit").symlink_to(outside, target_is_directory=True)

    with pytest.raises(PathEscape):
        resolve(volume, "exit")
    with pytest.raises(PathEscape):
        resolve(volume, "exit/secret.txt")


def test_resolve_follows_symlink_that_stays_inside(volume: Volume) -> None:
    """Links whose target is inside the volume resolve to that target."""
    (volume.root / "real").mkdir()
    (volume.root / "alias").symlink_to(volume.root / "real")
    assert resolve(volume, "alias") == volume.root / "real"


def test_resolve_does_not_reach_a_sibling_volume(volume: Volume) -> None:
    """Another principal's directory is outside this volume."""
    sibling = volume.root.parent / ("0" * 32)
    sibling.mkdir()
    with pytest.raises(PathEscape):
        resolve(volume, f"../{sibling.name}")


def test_resolve_logs_escape_attempt(volume: Volume, caplog) -> None:
    """Escapes are logged as warnings with the requested path."""
    caplog.set_level(logging.WARNING, logger="finder")
    with pytest.raises(PathEscape):
        resolve(volume, "../..")

    record = next(
        r for r in caplog.records if getattr(r, "event", None) == "path_escape"
    )
    assert record.levelno == logging.WARNING
    assert record.requested_path == "../.."
    assert record.component == "volume.resolver"


def test_is_contained_compares_whole_components(tmp_path: Path) -> None:
    """A sibling sharing a name prefix is not contained."""
    root = tmp_path / "vol"
    assert is_contained(root, root)
    assert is_contained(root, root / "child")
    assert not is_contained(root, tmp_path / "vol-other" / "child")
    assert not is_contained(root, tmp_path)


def test_resolve_symlink_loop_reads_as_missing(volume: Volume, caplog) -> None:
    """A self-referencing link fails like a missing entry, at or below it."""
    loop = volume.root / "loop"
    loop.symlink_to(loop)
    caplog.set_level(logging.INFO, logger="finder")

    with pytest.raises(NotFound):
        resolve(volume, "loop")
    with pytest.raises(NotFound):
        resolve(volume, "loop/x")
    assert any(
        getattr(record, "event", None) == "symlink_loop" for record in caplog.records
    )


def test_resolve_maps_loop_error_from_canonicalization(
    volume: Volume, monkeypatch
) -> None:
    """A loop reported by ``Path.resolve`` becomes NotFound."""
    real_resolve = Path.resolve

    def looping_resolve(self, strict=False):
        if self == volume.root:
            return real_resolve(self, strict=strict)
        raise RuntimeError(f"Symlink loop from {str(self)!r}")

    monkeypatch.setattr(Path, "resolve", looping_resolve)

    with pytest.raises(NotFound):
        resolve(volume, "anything")
