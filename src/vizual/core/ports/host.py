from typing import Protocol

from vizual.models import SourceRange


class Notifier(Protocol):
    def warn(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class Editor(Protocol):
    async def open(self, locator: str, source_range: SourceRange | None = None, reveal: bool = False) -> None: ...

    async def reveal_folder(self, locator: str) -> None: ...
