import os
from datetime import UTC, datetime, timedelta

import pytest
from protean.utils.globals import current_domain

from leadalerts.config import Settings, reset_settings, set_settings
from leadalerts.delivery import reset_gateway, set_gateway
from leadalerts.delivery.fake_adapter import FakeDeliveryGateway
from leadalerts.lead.lead import Lead
from leadalerts.member.member import Member
from leadalerts.notification.markers import reset_marker_ledger
from leadalerts.tenant.tenant import Tenant

# Kyiv is UTC+2 in January
KYIV = "Europe/Kyiv"
BASE_JOIN = datetime(2025, 1, 1, 8, 0, tzinfo=UTC)


@pytest.fixture(scope="session")
def _leadalerts_domain(request):
    """Initialize the leadalerts domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from leadalerts.domain import leadalerts

    leadalerts.init()
    return leadalerts


@pytest.fixture(autouse=True)
def run_around_tests(_leadalerts_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _leadalerts_domain.domain_context()
    ctx.push()

    set_settings(Settings(crm_url="https://crm.example.com", send_timeout_seconds=2.0))
    set_gateway(FakeDeliveryGateway())
    reset_marker_ledger()

    yield

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()

    reset_gateway()
    reset_settings()
    reset_marker_ledger()
    ctx.pop()


@pytest.fixture()
def gateway():
    """The fake gateway installed for this test."""
    from leadalerts.delivery import get_gateway

    return get_gateway()


@pytest.fixture()
def tenant():
    tenant = Tenant.provision(name="Smile Clinic", timezone=KYIV, api_key="clinic-secret")
    current_domain.repository_for(Tenant).add(tenant)
    return tenant


@pytest.fixture()
def other_tenant():
    tenant = Tenant.provision(name="Other Org", timezone=KYIV, api_key="other-secret")
    current_domain.repository_for(Tenant).add(tenant)
    return tenant


@pytest.fixture()
def add_member(tenant):
    """Persist a member. ``channel_id=None`` leaves the member unreachable."""
    joined = {"count": 0}

    def _add(user_id, role="other", channel_id="auto", quiet_hours=None, disabled=(), tenant_obj=None):
        owner = tenant_obj or tenant
        joined["count"] += 1
        member = Member.join(
            tenant_id=str(owner.id),
            user_id=user_id,
            display_name=user_id.title(),
            role=role,
            joined_at=BASE_JOIN + timedelta(minutes=joined["count"]),
        )
        if channel_id == "auto":
            channel_id = f"chat-{user_id}"
        if channel_id:
            member.bind_channel(channel_id, user_id.title())
        if quiet_hours:
            member.set_quiet_hours(*quiet_hours)
        for category in disabled:
            member.disable_category(category)
        current_domain.repository_for(Member).add(member)
        return member

    return _add


@pytest.fixture()
def add_lead(tenant, gateway):
    """Persist a lead and forget the notifications its creation triggered."""

    def _add(tenant_obj=None, **fields):
        owner = tenant_obj or tenant
        fields.setdefault("phone", "+380501112233")
        fields.setdefault("name", "Olena Petrenko")
        lead = Lead.create(tenant_id=str(owner.id), **fields)
        current_domain.repository_for(Lead).add(lead)
        gateway.reset()
        return current_domain.repository_for(Lead).get(lead.id)

    return _add
