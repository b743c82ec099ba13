"""LeadAlerts API package."""

from leadalerts.api.routes import lead_router, member_router, scan_router, tenant_router

__all__ = ["tenant_router", "member_router", "lead_router", "scan_router"]
