from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt
from pydantic.alias_generators import to_camel
from typing import List, Optional, Union
from enum import Enum


class RequestType(str, Enum):
    CORRECTIVE = "corrective"
    PREVENTIVE = "preventive"


class RequestStatus(str, Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    REPAIRED = "repaired"
    SCRAP = "scrap"


class EquipmentStatus(str, Enum):
    ACTIVE = "active"
    SCRAPPED = "scrapped"


class OwnerType(str, Enum):
    DEPARTMENT = "department"
    EMPLOYEE = "employee"


class DocumentModel(BaseModel):
    """Documents are stored with camelCase keys; attributes stay snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
    )

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude={"id"})


# Technician Model
class Technician(DocumentModel):
    id: Optional[str] = None
    display_name: str
    avatar_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# Maintenance Team Model
class MaintenanceTeam(DocumentModel):
    id: Optional[str] = None
    name: str
    technician_ids: List[str] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# Equipment Model
class Equipment(DocumentModel):
    id: Optional[str] = None
    name: str
    serial_number: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    owner_type: Optional[OwnerType] = None
    owner_name: Optional[str] = None
    purchase_date: Optional[str] = None  # ISO date
    warranty_until: Optional[str] = None  # ISO date
    default_team_id: Optional[str] = None
    default_technician_id: Optional[str] = None
    status: EquipmentStatus = Field(default=EquipmentStatus.ACTIVE)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# Maintenance Request Model
class MaintenanceRequest(DocumentModel):
    id: Optional[str] = None
    type: RequestType
    subject: str
    description: Optional[str] = None
    equipment_id: str
    equipment_category: Optional[str] = None
    team_id: str
    technician_id: Optional[str] = None  # optional until work starts
    scheduled_at: Optional[str] = None  # expected for preventive requests
    duration_hours: Optional[float] = None  # set on completion
    status: RequestStatus = Field(default=RequestStatus.NEW)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# ===== Request payloads =====

class CreateTechnicianRequest(DocumentModel):
    display_name: str
    avatar_url: Optional[str] = None


class CreateTeamRequest(DocumentModel):
    name: str


class SetTeamTechniciansRequest(DocumentModel):
    technician_ids: List[str]


class CreateEquipmentRequest(DocumentModel):
    name: str
    category: str
    default_team_id: str
    default_technician_id: str
    serial_number: Optional[str] = None
    location: Optional[str] = None
    owner_type: Optional[OwnerType] = None
    owner_name: Optional[str] = None
    purchase_date: Optional[str] = None
    warranty_until: Optional[str] = None


class CreateMaintenanceRequest(DocumentModel):
    type: RequestType
    subject: str
    equipment_id: str
    description: Optional[str] = None
    technician_id: Optional[str] = None
    scheduled_at: Optional[str] = None


class UpdateRequestStatus(DocumentModel):
    next_status: RequestStatus
    technician_id: Optional[str] = None
    duration_hours: Optional[Union[StrictInt, StrictFloat]] = None


class AssignTechnicianRequest(DocumentModel):
    technician_id: str
