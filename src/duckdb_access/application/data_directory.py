"""Data directory links.

Projects keep their database files outside the working tree (a shared
drive, a bigger disk) and reach them through a symbolic link named
`data` inside the project. Code and configuration then always say
`data/warehouse.duckdb`, and each machine points the link wherever its
copy lives.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_LINK_NAME = "data"


@dataclass(frozen=True)
class DataLinkStatus:
    """State of the data link inside a project."""

    path: Path
    is_link: bool
    target: Path | None
    exists: bool

    @property
    def dangling(self) -> bool:
        return self.is_link and not self.exists


def data_link_status(project_dir: str | Path, link_name: str = DEFAULT_LINK_NAME) -> DataLinkStatus:
    """Inspect the data link without changing anything."""
    link = Path(project_dir) / link_name
    if link.is_symlink():
        return DataLinkStatus(
            path=link,
            is_link=True,
            target=Path(os.readlink(link)),
            exists=link.exists(),
        )
    return DataLinkStatus(path=link, is_link=False, target=None, exists=link.exists())


def link_data_directory(
    project_dir: str | Path,
    target: str | Path,
    link_name: str = DEFAULT_LINK_NAME,
    replace: bool = False,
) -> Path:
    """Point `<project_dir>/<link_name>` at an external data directory.

    Linking again to the same target does nothing. A real file or
    directory in the link's place is never removed.

    Args:
        project_dir: Working tree that receives the link
        target: External directory holding the data
        link_name: Name of the link inside the project
        replace: Repoint an existing link that targets somewhere else

    Returns:
        Path of the link

    Raises:
        FileNotFoundError: If target or project_dir do not exist
        NotADirectoryError: If target is not a directory
        FileExistsError: If something else occupies the link path
    """
    project = Path(project_dir)
    target_path = Path(target).expanduser().resolve()

    if not project.is_dir():
        raise FileNotFoundError(f"Project directory not found: {project}")
    if not target_path.exists():
        raise FileNotFoundError(f"Data directory not found: {target_path}")
    if not target_path.is_dir():
        raise NotADirectoryError(f"Data path is not a directory: {target_path}")

    status = data_link_status(project, link_name)
    link = status.path

    if status.is_link:
        if link.resolve() == target_path:
            logger.debug("data_link_unchanged", link=str(link), target=str(target_path))
            return link
        if not replace:
            raise FileExistsError(
                f"{link} already points to {status.target}; pass replace=True to repoint it"
            )
        link.unlink()
    elif status.exists:
        raise FileExistsError(f"{link} exists and is not a symbolic link; refusing to replace it")

    link.symlink_to(target_path, target_is_directory=True)
    logger.info("data_link_created", link=str(link), target=str(target_path))
    return link


def resolve_data_directory(project_dir: str | Path, link_name: str = DEFAULT_LINK_NAME) -> Path:
    """Return the directory the data link points to.

    Raises:
        FileNotFoundError: If the link is missing or dangling
    """
    status = data_link_status(project_dir, link_name)
    if status.dangling:
        raise FileNotFoundError(f"{status.path} points to missing directory {status.target}")
    if not status.exists:
        raise FileNotFoundError(f"No data directory at {status.path}")
    return status.path.resolve()
