"""Request and response models for the v1 dashboard API."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["admin", "tester", "viewer"]
AccountStatus = Literal["Active", "Inactive"]
ProjectStatus = Literal["Active", "Inactive"]
ReportFormat = Literal["pdf", "csv", "txt"]
TimeRange = Literal["all", "week", "month", "year"]
DataPageType = Literal["live", "historical", "faults"]


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class ProjectRef(BaseModel):
    id: int
    name: str


class UserInfo(BaseModel):
    """Identity returned by login and ``/auth/me``."""

    id: int
    name: str
    email: str
    role: Role
    projects: List[ProjectRef] = Field(default_factory=list)


class LoginResponse(BaseModel):
    user: UserInfo
    access_token: str
    token_type: str = "bearer"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=8, description="Plain-text password (hashed before storage)")
    role: Role = "viewer"
    status: AccountStatus = "Active"
    projects: Optional[List[int]] = Field(
        None, description="Project ids to assign; defaults to the first project",
    )


class UserUpdate(BaseModel):
    """Partial update; omitted fields are left untouched."""

    username: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[str] = Field(None, min_length=3, max_length=255)
    password: Optional[str] = Field(None, min_length=8)
    role: Optional[Role] = None
    status: Optional[AccountStatus] = None
    projects: Optional[List[int]] = None


class UserOut(BaseModel):
    id: int
    username: str
    email: str
    role: Role
    status: AccountStatus
    last_login: str = Field(..., description="ISO timestamp or 'Never'")
    created_at: Optional[datetime] = None
    projects: List[ProjectRef] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    status: ProjectStatus = "Active"
    manager: Optional[str] = None


class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    status: str
    manager: Optional[str] = None
    created_date: Optional[date] = None


class ImportResult(BaseModel):
    message: str
    count: int


# ---------------------------------------------------------------------------
# Vehicles
# ---------------------------------------------------------------------------


class VehicleCreate(BaseModel):
    project_id: Optional[int] = None
    name: Optional[str] = Field(None, max_length=255)
    make: str = Field(..., min_length=1, max_length=50)
    model: str = Field(..., min_length=1, max_length=50)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    vin: Optional[str] = Field(None, max_length=17)
    status: str = "Active"


class VehicleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: Optional[int] = None
    name: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    vin: Optional[str] = None
    status: str


# ---------------------------------------------------------------------------
# Fault codes
# ---------------------------------------------------------------------------


class FaultCodeOut(BaseModel):
    id: int
    vehicle_id: int
    test_id: Optional[int] = None
    code: str
    description: Optional[str] = None
    severity: str
    status: str
    created_at: Optional[datetime] = None
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    category: str


class ClearResult(BaseModel):
    cleared: int


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


class ReportGenerateRequest(BaseModel):
    project_id: int
    format: ReportFormat = "pdf"
    report_type: str = Field("comprehensive", min_length=1, max_length=50)
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    include_vehicles: bool = True
    include_fault_codes: bool = True
    include_readiness: bool = True
    include_live_data: bool = True


class ReportOut(BaseModel):
    id: int
    project_id: int
    project_name: Optional[str] = None
    name: str
    report_type: str
    format: str
    created_at: Optional[datetime] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    include_vehicles: bool
    include_fault_codes: bool
    include_readiness: bool
    include_live_data: bool


class ReportSummary(BaseModel):
    date_range: str
    vehicles_count: int
    fault_codes_count: int


class ReportGenerateResponse(BaseModel):
    id: int
    name: str
    format: str
    timestamp: datetime
    download_url: str
    summary: ReportSummary


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: Literal["healthy", "degraded"]
    timestamp: datetime
    version: str
    services: dict
