# This project was developed with assistance from AI tools.
"""Source of the fixed, versioned CDCR 2311 template bytes."""

import logging
from pathlib import Path

from fastapi import Request

from ..core.config import Settings

logger = logging.getLogger(__name__)


class TemplateError(Exception):
    """Raised when the template file cannot be read."""


class TemplateSource:
    """Reads the template once and serves the cached bytes afterwards."""

    def __init__(self, path: Path, version: str):
        self.path = Path(path)
        self.version = version
        self._data: bytes | None = None

    def load(self) -> bytes:
        if self._data is None:
            try:
                self._data = self.path.read_bytes()
            except OSError as exc:
                raise TemplateError(f"Cannot read PDF template at {self.path}: {exc}") from exc
            logger.info(
                "Loaded PDF template %s (version=%s, %d bytes)",
                self.path.name,
                self.version,
                len(self._data),
            )
        return self._data


class StaticTemplate(TemplateSource):
    """In-memory template, for tests and scripts."""

    def __init__(self, data: bytes, version: str = "static"):
        super().__init__(Path("<memory>"), version)
        self._data = data


def build_template_source(cfg: Settings) -> TemplateSource:
    return TemplateSource(cfg.PDF_TEMPLATE_PATH, cfg.PDF_TEMPLATE_VERSION)


def get_template_source(request: Request) -> TemplateSource:
    """FastAPI dependency: the TemplateSource built at startup."""
    source = getattr(request.app.state, "template", None)
    if source is None:
        raise RuntimeError("TemplateSource not initialised -- app lifespan did not run")
    return source
