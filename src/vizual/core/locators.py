from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname


def path_to_locator(path: str | Path) -> str:
    return Path(path).resolve().as_uri()


def locator_to_path(locator: str) -> Path:
    parsed = urlparse(locator)
    if parsed.scheme != "file":
        raise ValueError(f"Unsupported locator scheme: {locator}")
    return Path(url2pathname(parsed.path))


def child_locator(parent_locator: str, name: str) -> str:
    return (locator_to_path(parent_locator) / name).as_uri()


def relative_path(locator: str, root_locator: str) -> str:
    """Return ``locator`` as a POSIX path relative to ``root_locator``.

    Falls back to the bare file name when the locator lies outside the root.
    """
    path = locator_to_path(locator)
    try:
        return path.relative_to(locator_to_path(root_locator)).as_posix()
    except ValueError:
        return path.name
