"""Pydantic models for API requests and responses."""

from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field
from enum import Enum


class DataMediaTypeEnum(str, Enum):
    ORG = "org"
    FILE = "file"


class OperationEnum(str, Enum):
    INSERT = "Insert"
    UPDATE = "Update"
    UPSERT = "Upsert"
    READONLY = "Readonly"
    DELETE = "Delete"


# Request Models
class OrgConnectionCreate(BaseModel):
    media: DataMediaTypeEnum = DataMediaTypeEnum.ORG
    instance_url: Optional[str] = None
    access_token: Optional[str] = None
    api_version: str = "59.0"

    def to_config(self) -> Dict[str, Any]:
        return {
            "media": self.media.value,
            "instanceUrl": self.instance_url,
            "accessToken": self.access_token,
            "apiVersion": self.api_version,
        }


class ObjectConfigCreate(BaseModel):
    query: str
    operation: Union[OperationEnum, int, str] = OperationEnum.READONLY
    external_id: Optional[str] = None
    delete_query: str = ""
    delete_old_data: bool = False
    excluded: bool = False
    excluded_fields: List[str] = Field(default_factory=list)
    all_records: bool = True
    target_records_filter: str = ""

    def to_config(self) -> Dict[str, Any]:
        operation = self.operation.value if isinstance(self.operation, OperationEnum) else self.operation
        return {
            "query": self.query,
            "operation": operation,
            "externalId": self.external_id,
            "deleteQuery": self.delete_query,
            "deleteOldData": self.delete_old_data,
            "excluded": self.excluded,
            "excludedFields": self.excluded_fields,
            "allRecords": self.all_records,
            "targetRecordsFilter": self.target_records_filter,
        }


class PlanRequest(BaseModel):
    objects: List[ObjectConfigCreate]
    source: OrgConnectionCreate = Field(default_factory=OrgConnectionCreate)
    target: OrgConnectionCreate = Field(default_factory=OrgConnectionCreate)
    is_person_account_enabled: bool = False
    multiselect_deny_list: Optional[List[str]] = None
    source_schemas: List[Dict[str, Any]] = Field(default_factory=list)  # Describe payloads
    target_schemas: List[Dict[str, Any]] = Field(default_factory=list)
    parallel: bool = False


# Response Models
class IssueResponse(BaseModel):
    entity: str
    field: str
    side: str
    message: str
    severity: str = "warning"


class TaskPlanResponse(BaseModel):
    name: str
    state: str
    operation: str
    external_id: str
    original_external_id: str
    query: str
    delete_query: Optional[str] = None
    fields: List[str]
    fields_to_update: List[str] = Field(default_factory=list)
    multiselect_pattern: Optional[Dict[str, Any]] = None
    excluded_fields: List[str] = Field(default_factory=list)
    parent_lookup_objects: List[str] = Field(default_factory=list)
    parent_master_detail_objects: List[str] = Field(default_factory=list)
    has_parent_lookup_objects: bool = False
    has_child_lookup_objects: bool = False
    issues: List[IssueResponse] = Field(default_factory=list)


class DependencyEdge(BaseModel):
    parent: str
    child: str


class PlanErrorResponse(BaseModel):
    entity: str
    phase: str
    error_type: str
    error: str
    timestamp: str


class JobPlanResponse(BaseModel):
    tasks: List[TaskPlanResponse]
    dependencies: List[DependencyEdge] = Field(default_factory=list)
    errors: List[PlanErrorResponse] = Field(default_factory=list)
