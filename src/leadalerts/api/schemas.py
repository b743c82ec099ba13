"""Pydantic request/response models for the LeadAlerts API.

API schemas are separate from Protean commands (anti-corruption pattern).
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------
class ProvisionTenantRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    timezone: str = Field(default="Europe/Kyiv", examples=["Europe/Kyiv"])
    api_key: str | None = Field(default=None, max_length=128)


class UpdateStatusLabelsRequest(BaseModel):
    status_labels: dict[str, str] = Field(..., examples=[{"scheduled": "Consult booked"}])


class AddMemberRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=128)
    display_name: str | None = Field(default=None, max_length=200)
    role: str = Field(default="other", examples=["owner", "manager", "other"])


class ChangeRoleRequest(BaseModel):
    role: str = Field(..., examples=["manager"])


class BindChannelRequest(BaseModel):
    channel_id: str = Field(..., min_length=1, max_length=64, examples=["123456789"])
    channel_name: str | None = Field(default=None, max_length=200)


class SetQuietHoursRequest(BaseModel):
    start: int = Field(..., ge=0, le=23, examples=[22])
    end: int = Field(..., ge=0, le=23, examples=[8])


class IngestLeadRequest(BaseModel):
    tenant_id: str = Field(..., min_length=1)
    name: str | None = Field(default=None, max_length=200)
    phone: str | None = Field(default=None, max_length=50)
    telegram: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=254)
    source: str | None = Field(default=None, max_length=200)
    problem: str | None = None
    notes: str | None = None


class CreateLeadRequest(IngestLeadRequest):
    status: str = Field(default="new")
    assigned_to: str | None = Field(default=None, max_length=128)
    next_date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$", examples=["2025-03-14"])
    next_time: str | None = Field(default=None, examples=["14:30"])
    consult_at: str | None = Field(default=None, examples=["2025-03-14T16:00"])


class UpdateLeadRequest(BaseModel):
    status: str | None = None
    assigned_to: str | None = Field(default=None, max_length=128)
    next_date: str | None = None
    next_time: str | None = None
    consult_at: str | None = None
    deposit_amount: float | None = Field(default=None, ge=0)
    total_amount: float | None = Field(default=None, ge=0)
    notes: str | None = None
    clear_fields: list[str] = Field(default_factory=list, examples=[["assigned_to"]])


class RunScanRequest(BaseModel):
    as_of: str | None = Field(default=None, description="ISO 8601 instant; defaults to now")
    force: bool = Field(default=False, description="Digest only: send regardless of the tenant's hour")


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class TenantIdResponse(BaseModel):
    tenant_id: str


class ApiKeyResponse(BaseModel):
    api_key: str


class MemberIdResponse(BaseModel):
    member_id: str


class MemberResponse(BaseModel):
    member_id: str
    tenant_id: str
    user_id: str
    display_name: str | None = None
    role: str
    channel_bound: bool
    channel_id: str | None = None
    channel_name: str | None = None
    channel_bound_at: datetime | None = None
    quiet_hours_start: int | None = None
    quiet_hours_end: int | None = None
    disabled_categories: list[str] = []


class LeadIdResponse(BaseModel):
    lead_id: str


class LeadUpdatedResponse(BaseModel):
    lead_id: str
    changed_fields: list[str]


class ScanReportResponse(BaseModel):
    tenants_scanned: int
    failed_tenants: int
    leads_evaluated: int
    reminders_fired: int
    batches: int
    sent: int
    failed: int
    suppressed: int
