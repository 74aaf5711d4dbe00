from __future__ import annotations

import asyncio
import os
from pathlib import Path

from vizual.core.locators import locator_to_path
from vizual.core.ports.filesystem import DirectoryEntry


def _scan(folder: Path) -> list[DirectoryEntry]:
    with os.scandir(folder) as it:
        entries = [DirectoryEntry(name=e.name, is_directory=e.is_dir()) for e in it]
    return sorted(entries, key=lambda e: e.name)


class LocalDirectoryLister:
    """Implements the ``DirectoryLister`` protocol on the local filesystem."""

    async def list(self, folder_locator: str) -> list[DirectoryEntry]:
        return await asyncio.to_thread(_scan, locator_to_path(folder_locator))
