from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    is_directory: bool


class DirectoryLister(Protocol):
    async def list(self, folder_locator: str) -> list[DirectoryEntry]: ...
