from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class _Record(BaseModel):
    # Admin forms round-trip fields this backend does not know about.
    model_config = {"extra": "allow"}


class SiteSettings(_Record):
    id: str = "1"
    profile_image_url: str | None = None
    name: str = ""
    title: str = ""
    bio: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    created_at: str = Field(default_factory=_now)
    updated_at: str = Field(default_factory=_now)


class Skill(_Record):
    id: str
    name: str
    category: str = ""
    proficiency: int = 0
    icon_url: str | None = None
    description: str | None = None
    sort_order: int = 0
    created_at: str = Field(default_factory=_now)
    updated_at: str = Field(default_factory=_now)


class Tool(_Record):
    id: str
    name: str
    proficiency: int = 0
    level: str = ""
    icon_url: str | None = None
    sort_order: int = 0
    created_at: str = Field(default_factory=_now)
    updated_at: str = Field(default_factory=_now)


class Project(_Record):
    id: str
    title: str
    description: str | None = None
    category: str = "Video Editing"
    thumbnail_url: str | None = None
    video_url: str | None = None
    video_type: Literal["file", "embed"] | None = None
    video_local_path: str | None = None
    link: str | None = None
    featured: bool = False
    sort_order: int = 0
    created_at: str = Field(default_factory=_now)
    updated_at: str = Field(default_factory=_now)


class Language(_Record):
    id: str
    name: str
    level: str = ""
    sort_order: int = 0
    created_at: str = Field(default_factory=_now)


class WorkExperience(_Record):
    id: str
    company: str
    role: str
    description: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    is_current: bool = False
    sort_order: int = 0
    created_at: str = Field(default_factory=_now)
    updated_at: str = Field(default_factory=_now)


class ContentField(_Record):
    id: str
    type: Literal["text", "textarea", "image", "video", "number"]
    label: str
    value: str = ""


class ContentSection(_Record):
    id: str
    name: str
    description: str = ""
    fields: list[ContentField] = []
    isExpanded: bool | None = None
    isVisible: bool = True
    sortOrder: int = 0


class PortfolioDocument(BaseModel):
    settings: SiteSettings = Field(default_factory=SiteSettings)
    skills: list[Skill] = []
    tools: list[Tool] = []
    projects: list[Project] = []
    languages: list[Language] = []
    experience: list[WorkExperience] = []
    sections: list[ContentSection] = []


class SectionUpdate(BaseModel):
    section: str | None = None
    data: dict | list | None = None
