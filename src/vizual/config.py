import logging
import os

from pydantic import BaseModel, Field
from rich.logging import RichHandler


class Settings(BaseModel):
    root: str = "."
    max_nodes: int = Field(default=1000, ge=1)
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    recheck_delay: float = Field(default=0.1, ge=0)


def load_settings() -> Settings:
    """Read settings from ``VIZUAL_*`` environment variables."""
    return Settings(
        root=os.getenv("VIZUAL_ROOT", "."),
        max_nodes=int(os.getenv("VIZUAL_MAX_NODES", "1000")),
        host=os.getenv("VIZUAL_HOST", "127.0.0.1"),
        port=int(os.getenv("VIZUAL_PORT", "8000")),
        log_level=os.getenv("VIZUAL_LOG_LEVEL", "INFO"),
        recheck_delay=float(os.getenv("VIZUAL_RECHECK_DELAY", "0.1")),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
