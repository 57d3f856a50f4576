from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from rangers_portal.models.enums import ApplicationStatus, OrganizationType


class ApplicationBase(BaseModel):
    application_id: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: str = Field(..., min_length=1)
    organization: str = Field(..., min_length=1)
    organization_type: OrganizationType
    selected_topic: int = Field(..., ge=1, le=5)
    selected_module: str = Field(..., min_length=1)
    motivation: str
    cv_url: Optional[str] = None
    recommendation_letter_url: Optional[str] = None
    logo_url: Optional[str] = None


class ApplicationCreate(ApplicationBase):
    status: ApplicationStatus = ApplicationStatus.PENDING


class ApplicationUpdate(BaseModel):
    status: Optional[ApplicationStatus] = None
    admin_notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None

    @field_validator("status")
    @classmethod
    def status_not_null(cls, value):
        # omitted keeps the stored status; an explicit null is not a status
        if value is None:
            raise ValueError("status cannot be null")
        return value


class ApplicationRead(ApplicationBase):
    id: str
    status: ApplicationStatus
    created_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    admin_notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ApplicationStats(BaseModel):
    total: int = 0
    pending: int = 0
    reviewing: int = 0
    approved: int = 0
    rejected: int = 0


class DeleteLogsResponse(BaseModel):
    deleted: int


class ProcedureCall(BaseModel):
    app_id: str
