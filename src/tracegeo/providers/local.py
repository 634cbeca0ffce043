"""Shared plumbing for providers backed by an on-disk database."""

from __future__ import annotations

import asyncio
import logging
import sys
from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar, List, Optional, Sequence

from ..constants import SYSTEM_DATA_DIRS
from ..errors import NotFoundError
from ..models import GeoResult
from .base import GeoProvider

if TYPE_CHECKING:  # pragma: no cover
    from ..config import AppSettings

logger = logging.getLogger(__name__)


def default_search_dirs() -> List[Path]:
    """Folders searched for a database, in priority order."""
    folders = [Path.cwd()]
    if sys.argv and sys.argv[0]:
        folders.append(Path(sys.argv[0]).resolve().parent)
    if not sys.platform.startswith("win"):
        folders.extend(Path(folder) for folder in SYSTEM_DATA_DIRS)
    return folders


def locate_database(
    filename: str, override: str = "", search_dirs: Optional[Sequence[Path | str]] = None
) -> Path:
    """
    Find a database file.

    Args:
        filename: Database file name to look for in the search folders.
        override: Explicit location. When set it must exist; the search
            folders are not consulted.
        search_dirs: Folders to search; defaults to :func:`default_search_dirs`.

    Returns:
        Path of the first existing match.

    Raises:
        NotFoundError: No usable file was found.
    """
    if override:
        path = Path(override).expanduser()
        if path.is_file():
            return path
        raise NotFoundError(f"{override} is set but the file does not exist", context=filename)

    folders = default_search_dirs() if search_dirs is None else [Path(f) for f in search_dirs]
    for folder in folders:
        candidate = folder / filename
        if candidate.is_file():
            logger.debug("Using %s", candidate)
            return candidate
    raise NotFoundError(f"no {filename} found", context=filename)


class LocalDatabaseProvider(GeoProvider):
    """Provider reading a local database file.

    The file location is resolved on first use and kept on the instance;
    the database itself is opened and closed on every lookup.
    """

    filename: ClassVar[str]

    def __init__(self, database_path: str = "", search_dirs: Optional[Sequence[Path | str]] = None):
        self.override = database_path
        self.search_dirs = search_dirs
        self._path: Optional[Path] = None

    @classmethod
    def from_settings(cls, settings: "AppSettings") -> "LocalDatabaseProvider":
        return cls(database_path=settings.database_path(cls.descriptor.name))

    @property
    def database_path(self) -> Path:
        if self._path is None:
            self._path = locate_database(self.filename, self.override, self.search_dirs)
        return self._path

    async def resolve(
        self,
        ip: str,
        timeout: Optional[float] = None,
        token: str = "",
        extended: bool = False,
    ) -> GeoResult:
        path = self.database_path
        return await asyncio.to_thread(self.lookup, path, ip.strip(), extended)

    @abstractmethod
    def lookup(self, path: Path, ip: str, extended: bool) -> GeoResult:
        """Blocking lookup against the database at ``path``."""
