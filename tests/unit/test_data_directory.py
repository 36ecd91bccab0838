"""Unit tests for data directory links."""

from __future__ import annotations

from pathlib import Path

import pytest

from duckdb_access.application.data_directory import (
    data_link_status,
    link_data_directory,
    resolve_data_directory,
)


@pytest.fixture
def project(temp_dir: Path) -> Path:
    path = temp_dir / "project"
    path.mkdir()
    return path


@pytest.fixture
def external(temp_dir: Path) -> Path:
    path = temp_dir / "shared" / "data"
    path.mkdir(parents=True)
    (path / "warehouse.duckdb").touch()
    return path


@pytest.mark.unit
class TestLinkDataDirectory:
    """Tests for link_data_directory."""

    def test_creates_symlink(self, project: Path, external: Path) -> None:
        link = link_data_directory(project, external)

        assert link == project / "data"
        assert link.is_symlink()
        assert (link / "warehouse.duckdb").exists()

    def test_custom_link_name(self, project: Path, external: Path) -> None:
        link = link_data_directory(project, external, link_name="lake")

        assert link.name == "lake"
        assert link.resolve() == external.resolve()

    def test_idempotent(self, project: Path, external: Path) -> None:
        first = link_data_directory(project, external)
        second = link_data_directory(project, external)

        assert first == second
        assert second.resolve() == external.resolve()

    def test_existing_link_elsewhere(self, project: Path, external: Path, temp_dir: Path) -> None:
        other = temp_dir / "other"
        other.mkdir()
        link_data_directory(project, other)

        with pytest.raises(FileExistsError, match="replace=True"):
            link_data_directory(project, external)

    def test_replace_existing_link(self, project: Path, external: Path, temp_dir: Path) -> None:
        other = temp_dir / "other"
        other.mkdir()
        link_data_directory(project, other)

        link = link_data_directory(project, external, replace=True)

        assert link.resolve() == external.resolve()

    def test_real_directory_never_replaced(self, project: Path, external: Path) -> None:
        real = project / "data"
        real.mkdir()
        (real / "keep.csv").touch()

        with pytest.raises(FileExistsError, match="not a symbolic link"):
            link_data_directory(project, external, replace=True)

        assert (real / "keep.csv").exists()

    def test_missing_target(self, project: Path, temp_dir: Path) -> None:
        with pytest.raises(FileNotFoundError):
            link_data_directory(project, temp_dir / "missing")

    def test_target_is_file(self, project: Path, external: Path) -> None:
        with pytest.raises(NotADirectoryError):
            link_data_directory(project, external / "warehouse.duckdb")

    def test_missing_project(self, temp_dir: Path, external: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Project"):
            link_data_directory(temp_dir / "nope", external)


@pytest.mark.unit
class TestResolveDataDirectory:
    """Tests for resolve_data_directory and data_link_status."""

    def test_resolves_link(self, project: Path, external: Path) -> None:
        link_data_directory(project, external)

        assert resolve_data_directory(project) == external.resolve()

    def test_missing_link(self, project: Path) -> None:
        with pytest.raises(FileNotFoundError, match="No data directory"):
            resolve_data_directory(project)

    def test_dangling_link(self, project: Path, temp_dir: Path) -> None:
        gone = temp_dir / "gone"
        gone.mkdir()
        link_data_directory(project, gone)
        gone.rmdir()

        status = data_link_status(project)
        assert status.is_link
        assert status.dangling

        with pytest.raises(FileNotFoundError, match="missing directory"):
            resolve_data_directory(project)

    def test_status_of_plain_directory(self, project: Path) -> None:
        (project / "data").mkdir()

        status = data_link_status(project)

        assert not status.is_link
        assert status.exists
        assert status.target is None
