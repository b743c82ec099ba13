"""FastAPI routes for LeadAlerts.

Thin adapters that translate HTTP requests into domain commands.
No business logic — just schema→command→response translation.
"""

import json
from datetime import datetime

from fastapi import APIRouter, Header, HTTPException
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from leadalerts.api.schemas import (
    AddMemberRequest,
    ApiKeyResponse,
    BindChannelRequest,
    ChangeRoleRequest,
    CreateLeadRequest,
    IngestLeadRequest,
    LeadIdResponse,
    LeadUpdatedResponse,
    MemberIdResponse,
    MemberResponse,
    ProvisionTenantRequest,
    RunScanRequest,
    ScanReportResponse,
    SetQuietHoursRequest,
    StatusResponse,
    TenantIdResponse,
    UpdateLeadRequest,
    UpdateStatusLabelsRequest,
)
from leadalerts.exceptions import InvalidApiKeyError, StorageUnavailableError
from leadalerts.lead.ingestion import CreateLead, IngestLead
from leadalerts.lead.updates import UpdateLead
from leadalerts.member.management import (
    AddMember,
    BindChannel,
    ChangeRole,
    ClearQuietHours,
    DisableCategory,
    EnableCategory,
    SetQuietHours,
    UnbindChannel,
)
from leadalerts.member.member import Member
from leadalerts.notification.digest import SendDailyDigest
from leadalerts.notification.reminders import ScanReminders
from leadalerts.tenant.provisioning import ProvisionTenant, RotateApiKey, UpdateStatusLabels

# ---------------------------------------------------------------------------
# Tenant Router
# ---------------------------------------------------------------------------
tenant_router = APIRouter(prefix="/tenants", tags=["tenants"])


@tenant_router.post("", status_code=201, response_model=TenantIdResponse)
async def provision_tenant(body: ProvisionTenantRequest) -> TenantIdResponse:
    """Provision a new tenant organization."""
    command = ProvisionTenant(name=body.name, timezone=body.timezone, api_key=body.api_key)
    tenant_id = current_domain.process(command, asynchronous=False)
    return TenantIdResponse(tenant_id=tenant_id)


@tenant_router.put("/{tenant_id}/status-labels", response_model=StatusResponse)
async def update_status_labels(tenant_id: str, body: UpdateStatusLabelsRequest) -> StatusResponse:
    """Replace the tenant's custom status display names."""
    command = UpdateStatusLabels(tenant_id=tenant_id, status_labels=json.dumps(body.status_labels))
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="labels_updated")


@tenant_router.post("/{tenant_id}/api-key/rotate", response_model=ApiKeyResponse)
async def rotate_api_key(tenant_id: str) -> ApiKeyResponse:
    """Issue a new ingestion credential. The old one stops working immediately."""
    api_key = current_domain.process(RotateApiKey(tenant_id=tenant_id), asynchronous=False)
    return ApiKeyResponse(api_key=api_key)


# ---------------------------------------------------------------------------
# Member Router
# ---------------------------------------------------------------------------
member_router = APIRouter(prefix="/members", tags=["members"])


@member_router.post("/{tenant_id}", status_code=201, response_model=MemberIdResponse)
async def add_member(tenant_id: str, body: AddMemberRequest) -> MemberIdResponse:
    """Add a CRM user to the tenant's roster."""
    command = AddMember(
        tenant_id=tenant_id,
        user_id=body.user_id,
        display_name=body.display_name,
        role=body.role,
    )
    member_id = current_domain.process(command, asynchronous=False)
    return MemberIdResponse(member_id=member_id)


@member_router.get("/{tenant_id}/{user_id}", response_model=MemberResponse)
async def get_member(tenant_id: str, user_id: str) -> MemberResponse:
    """Show a member's channel binding and notification preferences."""
    member = current_domain.repository_for(Member).get_by_user(tenant_id, user_id)
    disabled = json.loads(member.disabled_categories) if member.disabled_categories else []
    return MemberResponse(
        member_id=str(member.id),
        tenant_id=str(member.tenant_id),
        user_id=member.user_id,
        display_name=member.display_name,
        role=member.role,
        channel_bound=member.is_reachable,
        channel_id=member.channel_id,
        channel_name=member.channel_name,
        channel_bound_at=member.channel_bound_at,
        quiet_hours_start=member.quiet_hours_start,
        quiet_hours_end=member.quiet_hours_end,
        disabled_categories=disabled,
    )


@member_router.put("/{tenant_id}/{user_id}/role", response_model=StatusResponse)
async def change_role(tenant_id: str, user_id: str, body: ChangeRoleRequest) -> StatusResponse:
    command = ChangeRole(tenant_id=tenant_id, user_id=user_id, role=body.role)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="role_changed")


@member_router.put("/{tenant_id}/{user_id}/channel", response_model=StatusResponse)
async def bind_channel(tenant_id: str, user_id: str, body: BindChannelRequest) -> StatusResponse:
    """Link the member's messaging chat."""
    command = BindChannel(
        tenant_id=tenant_id,
        user_id=user_id,
        channel_id=body.channel_id,
        channel_name=body.channel_name,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="channel_bound")


@member_router.delete("/{tenant_id}/{user_id}/channel", response_model=StatusResponse)
async def unbind_channel(tenant_id: str, user_id: str) -> StatusResponse:
    current_domain.process(UnbindChannel(tenant_id=tenant_id, user_id=user_id), asynchronous=False)
    return StatusResponse(status="channel_unbound")


@member_router.put("/{tenant_id}/{user_id}/quiet-hours", response_model=StatusResponse)
async def set_quiet_hours(tenant_id: str, user_id: str, body: SetQuietHoursRequest) -> StatusResponse:
    """Set the member's do-not-disturb window in tenant-local whole hours."""
    command = SetQuietHours(tenant_id=tenant_id, user_id=user_id, start=body.start, end=body.end)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="quiet_hours_set")


@member_router.delete("/{tenant_id}/{user_id}/quiet-hours", response_model=StatusResponse)
async def clear_quiet_hours(tenant_id: str, user_id: str) -> StatusResponse:
    current_domain.process(ClearQuietHours(tenant_id=tenant_id, user_id=user_id), asynchronous=False)
    return StatusResponse(status="quiet_hours_cleared")


@member_router.post("/{tenant_id}/{user_id}/categories/{category}/disable", response_model=StatusResponse)
async def disable_category(tenant_id: str, user_id: str, category: str) -> StatusResponse:
    command = DisableCategory(tenant_id=tenant_id, user_id=user_id, category=category)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="category_disabled")


@member_router.post("/{tenant_id}/{user_id}/categories/{category}/enable", response_model=StatusResponse)
async def enable_category(tenant_id: str, user_id: str, category: str) -> StatusResponse:
    command = EnableCategory(tenant_id=tenant_id, user_id=user_id, category=category)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="category_enabled")


# ---------------------------------------------------------------------------
# Lead Router
# ---------------------------------------------------------------------------
lead_router = APIRouter(prefix="/leads", tags=["leads"])


@lead_router.post("/ingest", status_code=201, response_model=LeadIdResponse)
async def ingest_lead(body: IngestLeadRequest, x_api_key: str = Header(default="")) -> LeadIdResponse:
    """Accept a lead from an external form or sheet sync."""
    command = IngestLead(
        tenant_id=body.tenant_id,
        api_key=x_api_key,
        name=body.name,
        phone=body.phone,
        telegram=body.telegram,
        email=body.email,
        source=body.source,
        problem=body.problem,
        notes=body.notes,
    )
    try:
        lead_id = current_domain.process(command, asynchronous=False)
    except ObjectNotFoundError:
        raise HTTPException(status_code=404, detail=f"Unknown tenant: {body.tenant_id}") from None
    except InvalidApiKeyError:
        raise HTTPException(status_code=401, detail="Invalid API key") from None
    except StorageUnavailableError:
        raise HTTPException(status_code=503, detail="Storage unavailable, retry later") from None
    return LeadIdResponse(lead_id=lead_id)


@lead_router.post("", status_code=201, response_model=LeadIdResponse)
async def create_lead(body: CreateLeadRequest) -> LeadIdResponse:
    """Create a lead from inside the CRM."""
    command = CreateLead(**body.model_dump())
    try:
        lead_id = current_domain.process(command, asynchronous=False)
    except StorageUnavailableError:
        raise HTTPException(status_code=503, detail="Storage unavailable, retry later") from None
    return LeadIdResponse(lead_id=lead_id)


@lead_router.patch("/{lead_id}", response_model=LeadUpdatedResponse)
async def update_lead(lead_id: str, body: UpdateLeadRequest) -> LeadUpdatedResponse:
    """Change lead fields; omitted fields stay as they are."""
    values = body.model_dump(exclude={"clear_fields"}, exclude_none=True)
    command = UpdateLead(lead_id=lead_id, clear_fields=",".join(body.clear_fields), **values)
    changed = current_domain.process(command, asynchronous=False)
    return LeadUpdatedResponse(lead_id=lead_id, changed_fields=changed or [])


# ---------------------------------------------------------------------------
# Scan Router
# ---------------------------------------------------------------------------
scan_router = APIRouter(prefix="/scans", tags=["scans"])


def _parse_as_of(value: str | None):
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid as_of: {value}") from None


@scan_router.post("/reminders", response_model=ScanReportResponse)
async def scan_reminders(body: RunScanRequest | None = None) -> ScanReportResponse:
    """Run one reminder pass. Intended for an external scheduler every few minutes."""
    as_of = _parse_as_of(body.as_of if body else None)
    report = current_domain.process(ScanReminders(as_of=as_of), asynchronous=False)
    return ScanReportResponse(**report.to_dict())


@scan_router.post("/digest", response_model=ScanReportResponse)
async def send_digest(body: RunScanRequest | None = None) -> ScanReportResponse:
    """Send the daily digest to tenants whose local digest hour is now."""
    as_of = _parse_as_of(body.as_of if body else None)
    force = body.force if body else False
    report = current_domain.process(SendDailyDigest(as_of=as_of, force=force), asynchronous=False)
    return ScanReportResponse(**report.to_dict())
