from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for records exchanged with the browser and the AI gateway in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SystemType(str, Enum):
    STANDALONE = "standalone"
    ON_GRID = "on-grid"
    HYBRID = "hybrid"


class ProjectStatus(str, Enum):
    SETUP = "setup"
    ANALYZING = "analyzing"
    STANDARDS = "standards"
    REVIEWING = "reviewing"
    COMPLETED = "completed"


class FileType(str, Enum):
    DWG = "dwg"
    PDF = "pdf"
    EXCEL = "excel"
    DATASHEET = "datasheet"
    STANDARD = "standard"


class FileStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class UploadedFile(CamelModel):
    id: str
    name: str
    type: FileType
    size: int
    uploaded_at: datetime
    status: FileStatus = FileStatus.COMPLETED
    storage_path: str | None = None


class Project(CamelModel):
    id: str
    name: str
    location: str = ""
    system_type: SystemType = SystemType.ON_GRID
    created_at: datetime
    updated_at: datetime
    status: ProjectStatus = ProjectStatus.SETUP
    files: list[UploadedFile] = Field(default_factory=list)
    standard_files: list[UploadedFile] = Field(default_factory=list)


class DocumentText(BaseModel):
    """A document whose text was already extracted by the hosted parser."""

    name: str
    content: str = ""
    file_type: str = "pdf"
    size: int = 0

    @property
    def extraction_status(self) -> str:
        if self.file_type not in ("pdf", "standard"):
            return "unsupported"
        return "ok" if self.content else "no_text"


class ProjectFileContent(BaseModel):
    """Structured context sent by the client along with a review request."""

    name: str
    content: str = ""
