"""Shared BDD fixtures and step definitions for LeadAlerts."""

from datetime import UTC, datetime

import pytest
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, then, when

from leadalerts.lead.lead import Lead
from leadalerts.member.member import Member
from leadalerts.notification.digest import run_daily_digest
from leadalerts.notification.reminders import run_reminder_scan
from leadalerts.tenant.tenant import Tenant


def _channel(user_id):
    return f"chat-{user_id}"


def _member(tenant, user_id):
    return current_domain.repository_for(Member).get_by_user(tenant.id, user_id)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def reports():
    """Reports returned by each scan run in the scenario, in order."""
    return []


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a tenant in "{timezone}"'), target_fixture="scenario_tenant")
def tenant_in_zone(timezone):
    tenant = Tenant.provision(name="Smile Clinic", timezone=timezone, api_key="clinic-secret")
    current_domain.repository_for(Tenant).add(tenant)
    return tenant


@given(parsers.cfparse('a member "{user_id}" with a bound channel'))
def member_with_channel(scenario_tenant, user_id):
    member = Member.join(tenant_id=str(scenario_tenant.id), user_id=user_id, display_name=user_id.title())
    member.bind_channel(_channel(user_id))
    current_domain.repository_for(Member).add(member)


@given(parsers.cfparse('"{user_id}" has quiet hours from {start:d} to {end:d}'))
def member_quiet_hours(scenario_tenant, user_id, start, end):
    member = _member(scenario_tenant, user_id)
    member.set_quiet_hours(start, end)
    current_domain.repository_for(Member).add(member)


@given(
    parsers.cfparse('a lead assigned to "{user_id}" with a task at "{next_date}" "{next_time}"'),
    target_fixture="lead",
)
def assigned_lead_with_task(scenario_tenant, gateway, user_id, next_date, next_time):
    lead = Lead.create(
        tenant_id=str(scenario_tenant.id),
        name="Olena Petrenko",
        phone="+380501112233",
        assigned_to=user_id,
        next_date=next_date,
        next_time=next_time,
    )
    current_domain.repository_for(Lead).add(lead)
    # Drop the assignment notice so scenarios count reminders only
    gateway.reset()
    return lead


@given(parsers.cfparse('the lead has a consultation scheduled at "{consult_at}"'))
def lead_consultation(lead, gateway, consult_at):
    repo = current_domain.repository_for(Lead)
    stored = repo.get(lead.id)
    stored.apply_changes(status="scheduled", consult_at=consult_at)
    repo.add(stored)
    gateway.reset()


@given(parsers.cfparse('delivery to "{user_id}" fails'))
def delivery_fails(gateway, user_id):
    gateway.configure(failing_channels=[_channel(user_id)])


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the reminder scan runs at "{moment}"'))
def reminder_scan_runs(reports, moment):
    reports.append(run_reminder_scan(now=datetime.fromisoformat(moment)))


@when(parsers.cfparse('the daily digest runs at "{moment}"'))
def daily_digest_runs(reports, moment):
    reports.append(run_daily_digest(now=datetime.fromisoformat(moment).astimezone(UTC)))


@when("delivery is restored")
def delivery_restored(gateway):
    gateway.configure()


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.re(r'"(?P<user_id>[^"]+)" receives (?P<count>\d+) messages?'))
def member_receives(gateway, user_id, count):
    assert len(gateway.sent_to(_channel(user_id))) == int(count)


@then(parsers.cfparse('the message to "{user_id}" contains "{text}"'))
def message_contains(gateway, user_id, text):
    assert text in gateway.sent_to(_channel(user_id))[-1]["text"]


@then(parsers.cfparse("the scan reports {count:d} suppressed"))
def scan_reports_suppressed(reports, count):
    assert reports[-1].suppressed == count
