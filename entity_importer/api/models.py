"""Pydantic models for API requests and responses."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from enum import Enum
from datetime import datetime


class BatchActionEnum(str, Enum):
    IMPORT = "import"
    ROLLBACK = "rollback"


# Request Models
class ImporterSave(BaseModel):
    label: str = ""
    description: str = ""
    display_page: bool = False
    source: Dict[str, Any] = Field(default_factory=dict)
    entity: Dict[str, Any] = Field(default_factory=dict)


class ProcessStepCreate(BaseModel):
    plugin_id: str
    settings: Dict[str, Any] = Field(default_factory=dict)


class FieldMappingSave(BaseModel):
    name: str
    destination: str
    importer_bundle: str
    label: str = ""
    processing: List[ProcessStepCreate] = Field(default_factory=list)
    unique_identifier: bool = False
    identifier_type: Optional[str] = None
    identifier_settings: Optional[str] = None


class UniqueIdentifier(BaseModel):
    identifier_name: str
    identifier_type: str
    identifier_settings: Optional[str] = None


class FieldMappingOptionsSave(BaseModel):
    unique_identifiers: List[UniqueIdentifier] = Field(default_factory=list)


class MigrationValues(BaseModel):
    configuration: Dict[str, Any] = Field(default_factory=dict)
    update: bool = False


class ImportRequest(BaseModel):
    bundle: Optional[str] = None
    migrations: Dict[str, MigrationValues] = Field(default_factory=dict)


class ActionRequest(BaseModel):
    bundle: Optional[str] = None
    action: BatchActionEnum = BatchActionEnum.ROLLBACK
    migrations: List[str] = Field(default_factory=list)


class FileRegister(BaseModel):
    uri: str
    filename: Optional[str] = None


# Response Models
class ImporterResponse(BaseModel):
    id: str
    label: str
    description: str
    display_page: bool
    source: Dict[str, Any]
    entity: Dict[str, Any]
    bundles: List[str]
    page_display_changed: bool = False


class ImporterListResponse(BaseModel):
    importers: List[ImporterResponse]
    total: int


class FieldMappingResponse(BaseModel):
    id: str
    name: str
    label: str
    destination: str
    importer_type: str
    importer_bundle: str
    processing: List[ProcessStepCreate] = Field(default_factory=list)
    unique_identifier: bool = False


class PipelineResponse(BaseModel):
    id: str
    label: str
    source: Dict[str, Any]
    process: Dict[str, Any]
    destination: Dict[str, Any]
    migration_dependencies: Dict[str, List[str]]


class PipelineStatusItem(BaseModel):
    id: str
    label: str
    status: str
    status_label: str


class PipelinePlanResponse(BaseModel):
    importer_id: str
    bundle: str
    pipelines: List[PipelineStatusItem]


class PipelineRunResponse(BaseModel):
    pipeline_id: str
    label: str
    action: str
    result: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    records_processed: int = 0
    records_created: int = 0
    records_updated: int = 0
    records_skipped: int = 0
    records_failed: int = 0
    records_deleted: int = 0
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class BatchResponse(BaseModel):
    action: str
    success: bool
    message: str
    results: Dict[str, str] = Field(default_factory=dict)
    runs: List[PipelineRunResponse] = Field(default_factory=list)
    error: Optional[Dict[str, Any]] = None


class FileResponse(BaseModel):
    id: str
    uri: str
    filename: str
    created_at: datetime
