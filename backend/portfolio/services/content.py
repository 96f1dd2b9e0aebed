"""Whole-document JSON store for the portfolio content.

Every save rewrites the full document. There is no versioning: two admins saving
at the same time race and the last write wins.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from portfolio.core.errors import InvalidContent
from portfolio.core.logging import get_logger
from portfolio.schemas.content import (
    ContentSection,
    Language,
    PortfolioDocument,
    Project,
    SiteSettings,
    Skill,
    Tool,
    WorkExperience,
)

log = get_logger(__name__)

DEFAULT_PROJECT_CATEGORY = "Video Editing"

SECTION_SCHEMAS: dict[str, TypeAdapter] = {
    "settings": TypeAdapter(SiteSettings),
    "skills": TypeAdapter(list[Skill]),
    "tools": TypeAdapter(list[Tool]),
    "projects": TypeAdapter(list[Project]),
    "languages": TypeAdapter(list[Language]),
    "experience": TypeAdapter(list[WorkExperience]),
    "sections": TypeAdapter(list[ContentSection]),
}


def default_document(name: str = "Bala Murugan S", title: str = "Video Editor & Graphic Designer") -> dict:
    document = PortfolioDocument(settings=SiteSettings(name=name, title=title, bio=""))
    return document.model_dump(mode="json")


def migrate_document(document: dict) -> bool:
    """Backfill fields older documents lack. Returns True when anything changed."""
    changed = False
    for key, value in default_document().items():
        if key not in document:
            document[key] = value
            changed = True
    for project in document.get("projects") or []:
        if isinstance(project, dict) and not project.get("category"):
            project["category"] = DEFAULT_PROJECT_CATEGORY
            changed = True
    return changed


class ContentStore:
    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> dict:
        if not self.path.exists():
            log.info("content_document_missing", path=str(self.path))
            document = default_document()
            self.save(document)
            return document

        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.error("content_document_unreadable", path=str(self.path), error=str(e))
            return default_document()
        if not isinstance(document, dict):
            log.error("content_document_malformed", path=str(self.path))
            return default_document()

        if migrate_document(document):
            log.info("content_document_migrated", path=str(self.path))
            self.save(document)
        return document

    def save(self, document: dict) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2, ensure_ascii=False)
            os.replace(temp, self.path)
            return True
        except OSError as e:
            log.error("content_document_write_failed", path=str(self.path), error=str(e))
            return False

    def update_section(self, section: str, data: Any) -> bool:
        adapter = SECTION_SCHEMAS.get(section)
        if adapter is None:
            raise InvalidContent(f'Unknown section: "{section}"')
        try:
            validated = adapter.validate_python(data)
        except ValidationError as e:
            log.warning("content_section_invalid", section=section, errors=e.error_count())
            raise InvalidContent()

        document = self.load()
        document[section] = adapter.dump_python(validated, mode="json")
        saved = self.save(document)
        if saved:
            log.info("content_section_saved", section=section)
        return saved
