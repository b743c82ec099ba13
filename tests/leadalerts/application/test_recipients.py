from leadalerts.lead.lead import Lead
from leadalerts.notification.category import NotificationCategory
from leadalerts.notification.recipients import resolve_recipients


def _ids(members):
    return [m.user_id for m in members]


def _lead(tenant, **fields):
    return Lead.create(tenant_id=str(tenant.id), phone="1", **fields)


class TestAssignmentScoped:
    def test_assignee_only(self, tenant, add_member):
        add_member("owner", role="owner")
        add_member("manager", role="manager")
        add_member("ivan")

        lead = _lead(tenant, assigned_to="ivan")
        for category in (
            NotificationCategory.ASSIGNMENT,
            NotificationCategory.STATUS_CHANGE,
            NotificationCategory.TASK_REMINDER_15,
            NotificationCategory.CONSULT_REMINDER_60,
        ):
            assert _ids(resolve_recipients(tenant.id, lead, category)) == ["ivan"]

    def test_unreachable_assignee_gets_nobody(self, tenant, add_member):
        add_member("owner", role="owner")
        add_member("ivan", channel_id=None)

        lead = _lead(tenant, assigned_to="ivan")
        assert resolve_recipients(tenant.id, lead, NotificationCategory.TASK_REMINDER_15) == []

    def test_missing_assignee_gets_nobody(self, tenant, add_member):
        add_member("owner", role="owner")

        lead = _lead(tenant, assigned_to="ghost")
        assert resolve_recipients(tenant.id, lead, NotificationCategory.STATUS_CHANGE) == []

    def test_unassigned_goes_to_supervisors(self, tenant, add_member):
        add_member("owner", role="owner")
        add_member("ivan")
        add_member("manager", role="manager")
        add_member("silent-manager", role="manager", channel_id=None)

        lead = _lead(tenant)
        assert _ids(resolve_recipients(tenant.id, lead, NotificationCategory.TASK_REMINDER_15)) == [
            "owner",
            "manager",
        ]


class TestRoleScoped:
    def test_new_lead_goes_to_supervisors_even_when_assigned(self, tenant, add_member):
        add_member("owner", role="owner")
        add_member("ivan")

        lead = _lead(tenant, assigned_to="ivan")
        assert _ids(resolve_recipients(tenant.id, lead, NotificationCategory.NEW_LEAD)) == ["owner"]


class TestTenantWide:
    def test_digest_reaches_every_bound_member(self, tenant, add_member):
        add_member("owner", role="owner")
        add_member("ivan")
        add_member("maria", channel_id=None)

        assert _ids(resolve_recipients(tenant.id, None, NotificationCategory.DAILY_DIGEST)) == ["owner", "ivan"]


class TestTenantIsolation:
    def test_members_of_other_tenants_never_resolved(self, tenant, other_tenant, add_member):
        add_member("owner", role="owner")
        add_member("ivan", tenant_obj=other_tenant)
        add_member("other-owner", role="owner", tenant_obj=other_tenant)

        lead = _lead(tenant, assigned_to="ivan")
        assert resolve_recipients(tenant.id, lead, NotificationCategory.ASSIGNMENT) == []
        assert _ids(resolve_recipients(tenant.id, _lead(tenant), NotificationCategory.NEW_LEAD)) == ["owner"]
        assert _ids(resolve_recipients(tenant.id, None, NotificationCategory.DAILY_DIGEST)) == ["owner"]
