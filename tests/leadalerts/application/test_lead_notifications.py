import json
from datetime import UTC, datetime

from protean.utils.globals import current_domain

from leadalerts.lead.events import LeadUpdated
from leadalerts.lead.ingestion import CreateLead, IngestLead
from leadalerts.lead.lead import Lead
from leadalerts.lead.updates import UpdateLead
from leadalerts.notification.lead_events import LeadEventsNotifier
from leadalerts.tenant.tenant import Tenant


def _channels(gateway):
    return sorted(m["channel_id"] for m in gateway.sent)


def _supervisors_and_staff(add_member):
    add_member("owner", role="owner")
    add_member("manager", role="manager")
    add_member("ivan")
    add_member("maria")


class TestNewLead:
    def test_ingested_lead_notifies_owners_and_managers(self, tenant, add_member, gateway):
        _supervisors_and_staff(add_member)

        current_domain.process(
            IngestLead(tenant_id=str(tenant.id), api_key="clinic-secret", name="Olena", phone="+380501112233"),
            asynchronous=False,
        )

        assert _channels(gateway) == ["chat-manager", "chat-owner"]
        assert all("New lead" in m["text"] for m in gateway.sent)
        assert all("Olena" in m["text"] for m in gateway.sent)

    def test_assigned_lead_also_notifies_assignee(self, tenant, add_member, gateway):
        _supervisors_and_staff(add_member)

        current_domain.process(
            CreateLead(tenant_id=str(tenant.id), phone="+380501112233", assigned_to="ivan"),
            asynchronous=False,
        )

        assert _channels(gateway) == ["chat-ivan", "chat-manager", "chat-owner"]
        assert "assigned" in gateway.sent_to("chat-ivan")[0]["text"]

    def test_disabled_category_suppresses(self, tenant, add_member, gateway):
        add_member("owner", role="owner", disabled=["new_lead"])
        add_member("manager", role="manager")

        current_domain.process(CreateLead(tenant_id=str(tenant.id), phone="1"), asynchronous=False)

        assert _channels(gateway) == ["chat-manager"]

    def test_delivery_failure_does_not_fail_ingestion(self, tenant, add_member, gateway):
        add_member("owner", role="owner")
        gateway.configure(raising_channels=["chat-owner"])

        lead_id = current_domain.process(
            IngestLead(tenant_id=str(tenant.id), api_key="clinic-secret", phone="1"),
            asynchronous=False,
        )

        assert current_domain.repository_for(Lead).get(lead_id).status == "new"

    def test_night_lead_skips_manager_in_quiet_hours(self, tenant, add_member, gateway):
        add_member("owner", role="owner")
        add_member("manager", role="manager", quiet_hours=(22, 6))
        gateway.reset()
        # 03:00 in Kyiv
        lead = Lead.create(tenant_id=str(tenant.id), phone="1", created_at=datetime(2025, 1, 15, 1, 0, tzinfo=UTC))

        current_domain.repository_for(Lead).add(lead)

        assert _channels(gateway) == ["chat-owner"]


class TestLeadUpdated:
    def test_status_change_goes_to_assignee_only(self, add_member, add_lead, gateway):
        _supervisors_and_staff(add_member)
        lead = add_lead(assigned_to="ivan")

        current_domain.process(UpdateLead(lead_id=str(lead.id), status="contacted"), asynchronous=False)

        assert _channels(gateway) == ["chat-ivan"]
        assert "New → <b>Contacted</b>" in gateway.sent[0]["text"]

    def test_status_change_on_unassigned_lead_goes_to_supervisors(self, add_member, add_lead, gateway):
        _supervisors_and_staff(add_member)
        lead = add_lead()

        current_domain.process(UpdateLead(lead_id=str(lead.id), status="scheduled"), asynchronous=False)

        assert _channels(gateway) == ["chat-manager", "chat-owner"]

    def test_status_label_uses_tenant_labels(self, tenant, add_member, add_lead, gateway):
        add_member("ivan")
        repo = current_domain.repository_for(Tenant)
        stored = repo.get(tenant.id)
        stored.update_status_labels({"scheduled": "Consult booked"})
        repo.add(stored)
        lead = add_lead(assigned_to="ivan")

        current_domain.process(UpdateLead(lead_id=str(lead.id), status="scheduled"), asynchronous=False)

        assert "New → <b>Consult booked</b>" in gateway.sent_to("chat-ivan")[0]["text"]

    def test_missing_assignee_has_no_fallback(self, add_member, add_lead, gateway):
        _supervisors_and_staff(add_member)
        lead = add_lead(assigned_to="ghost")

        current_domain.process(UpdateLead(lead_id=str(lead.id), status="contacted"), asynchronous=False)

        assert gateway.sent == []

    def test_reassignment_notifies_new_assignee_only(self, add_member, add_lead, gateway):
        _supervisors_and_staff(add_member)
        lead = add_lead(assigned_to="ivan")

        current_domain.process(UpdateLead(lead_id=str(lead.id), assigned_to="maria"), asynchronous=False)

        assert _channels(gateway) == ["chat-maria"]
        assert "assigned" in gateway.sent[0]["text"]

    def test_status_and_assignee_change_together(self, add_member, add_lead, gateway):
        _supervisors_and_staff(add_member)
        lead = add_lead()

        current_domain.process(
            UpdateLead(lead_id=str(lead.id), status="contacted", assigned_to="maria"),
            asynchronous=False,
        )

        texts = [m["text"] for m in gateway.sent_to("chat-maria")]
        assert len(texts) == 2
        assert any("status changed" in text for text in texts)
        assert any("assigned" in text for text in texts)
        assert not gateway.sent_to("chat-owner")

    def test_unassigning_sends_nothing(self, add_member, add_lead, gateway):
        _supervisors_and_staff(add_member)
        lead = add_lead(assigned_to="ivan")

        current_domain.process(UpdateLead(lead_id=str(lead.id), clear_fields="assigned_to"), asynchronous=False)

        assert gateway.sent == []

    def test_other_fields_send_nothing(self, add_member, add_lead, gateway):
        _supervisors_and_staff(add_member)
        lead = add_lead(assigned_to="ivan")

        current_domain.process(
            UpdateLead(lead_id=str(lead.id), notes="Prefers evening calls", next_date="2025-01-20"),
            asynchronous=False,
        )

        assert gateway.sent == []

    def test_quiet_hours_use_event_time(self, tenant, add_member, add_lead, gateway):
        add_member("ivan", quiet_hours=(22, 8))
        lead = add_lead(assigned_to="ivan")

        # 23:30 in Kyiv
        lead.apply_changes(status="contacted", updated_at=datetime(2025, 1, 15, 21, 30, tzinfo=UTC))
        current_domain.repository_for(Lead).add(lead)
        assert gateway.sent == []

        lead = current_domain.repository_for(Lead).get(lead.id)
        # 12:00 in Kyiv
        lead.apply_changes(status="scheduled", updated_at=datetime(2025, 1, 15, 10, 0, tzinfo=UTC))
        current_domain.repository_for(Lead).add(lead)
        assert _channels(gateway) == ["chat-ivan"]


class TestUpdateLeadHandler:
    def test_returns_changed_fields(self, add_lead):
        lead = add_lead()
        changed = current_domain.process(
            UpdateLead(lead_id=str(lead.id), status="deposit", deposit_amount=1500.0),
            asynchronous=False,
        )
        assert changed == ["status", "deposit_amount"]

        stored = current_domain.repository_for(Lead).get(lead.id)
        assert stored.deposit_amount == 1500.0

    def test_clear_fields(self, add_lead):
        lead = add_lead(next_date="2025-01-20", next_time="10:00")
        current_domain.process(
            UpdateLead(lead_id=str(lead.id), clear_fields="next_date, next_time"),
            asynchronous=False,
        )
        stored = current_domain.repository_for(Lead).get(lead.id)
        assert stored.next_date is None
        assert stored.next_time is None


class TestNotifierUsesEventSnapshot:
    def test_assignment_goes_to_assignee_named_by_event(self, tenant, add_member, add_lead, gateway):
        add_member("ivan")
        add_member("maria")
        lead = add_lead()

        # The lead has moved on to maria by the time the earlier event is handled
        stored = current_domain.repository_for(Lead).get(lead.id)
        stored.apply_changes(assigned_to="maria")
        current_domain.repository_for(Lead).add(stored)
        gateway.reset()

        event = LeadUpdated(
            lead_id=str(lead.id),
            tenant_id=str(tenant.id),
            previous_status="new",
            status="new",
            previous_assigned_to=None,
            assigned_to="ivan",
            changed_fields=json.dumps(["assigned_to"]),
            updated_at=datetime(2025, 1, 15, 10, 0, tzinfo=UTC),
        )
        LeadEventsNotifier().on_lead_updated(event)

        assert _channels(gateway) == ["chat-ivan"]

    def test_status_change_for_unassigned_snapshot_goes_to_supervisors(self, tenant, add_member, add_lead, gateway):
        add_member("owner", role="owner")
        add_member("maria")
        lead = add_lead()

        stored = current_domain.repository_for(Lead).get(lead.id)
        stored.apply_changes(assigned_to="maria")
        current_domain.repository_for(Lead).add(stored)
        gateway.reset()

        event = LeadUpdated(
            lead_id=str(lead.id),
            tenant_id=str(tenant.id),
            previous_status="new",
            status="contacted",
            previous_assigned_to=None,
            assigned_to=None,
            changed_fields=json.dumps(["status"]),
            updated_at=datetime(2025, 1, 15, 10, 0, tzinfo=UTC),
        )
        LeadEventsNotifier().on_lead_updated(event)

        assert _channels(gateway) == ["chat-owner"]
