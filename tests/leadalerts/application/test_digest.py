from datetime import UTC, datetime, timedelta

from protean.utils.globals import current_domain

from leadalerts.lead.lead import Lead
from leadalerts.notification.digest import SendDailyDigest, digest_marker_key, run_daily_digest, summarize
from leadalerts.notification.markers import get_marker_ledger

# 09:10 in Kyiv, the default digest hour
DIGEST_TIME = datetime(2025, 1, 15, 7, 10, tzinfo=UTC)


def _lead(tenant, **fields):
    return Lead.create(tenant_id=str(tenant.id), phone="1", **fields)


class TestSummarize:
    def test_counters(self, tenant):
        paid_this_month = _lead(tenant, status="repeat")
        paid_this_month.apply_changes(status="paid", total_amount=12000, updated_at=datetime(2025, 1, 3, tzinfo=UTC))
        paid_last_month = _lead(tenant)
        paid_last_month.apply_changes(status="paid", total_amount=9000, updated_at=datetime(2024, 12, 30, tzinfo=UTC))
        deposit = _lead(tenant, status="deposit")
        deposit.apply_changes(deposit_amount=1500)

        leads = [
            _lead(tenant),
            _lead(tenant, next_date="2025-01-15"),
            _lead(tenant, status="contacted", next_date="2025-01-10"),
            _lead(tenant, status="frozen", next_date="2025-01-10"),
            _lead(tenant, status="scheduled", consult_at="2025-01-15T16:00"),
            _lead(tenant, status="scheduled", consult_at="not a date"),
            _lead(tenant, status="contacted", next_date="garbage"),
            deposit,
            paid_this_month,
            paid_last_month,
        ]

        summary = summarize(tenant, leads, tenant.local_time(DIGEST_TIME))

        assert summary["total"] == 10
        assert summary["new"] == 2
        assert summary["due_today"] == 1
        assert summary["overdue"] == 1
        assert summary["consults_today"] == 1
        assert (summary["deposit_count"], summary["deposit_sum"]) == (1, 1500.0)
        assert (summary["paid_count"], summary["paid_sum"]) == (1, 12000.0)

    def test_empty_pipeline(self, tenant):
        summary = summarize(tenant, [], tenant.local_time(DIGEST_TIME))
        assert summary["total"] == 0
        assert summary["paid_sum"] == 0.0


class TestRunDailyDigest:
    def test_sent_to_every_bound_member(self, add_member, add_lead, gateway):
        add_member("owner", role="owner")
        add_member("ivan")
        add_member("unbound", channel_id=None)
        add_lead()
        add_lead(next_date="2025-01-15")

        report = run_daily_digest(now=DIGEST_TIME)

        assert report.tenants_scanned == 1
        assert report.sent == 2
        assert sorted(m["channel_id"] for m in gateway.sent) == ["chat-ivan", "chat-owner"]
        text = gateway.sent[0]["text"]
        assert "Smile Clinic, 2025-01-15" in text
        assert "Total leads: 2" in text
        assert "Due today: 1" in text

    def test_skipped_outside_digest_hour(self, add_member, gateway):
        add_member("owner", role="owner")

        report = run_daily_digest(now=DIGEST_TIME + timedelta(hours=2))

        assert report.tenants_scanned == 0
        assert gateway.sent == []

    def test_force_ignores_hour(self, add_member, gateway):
        add_member("owner", role="owner")

        run_daily_digest(now=DIGEST_TIME + timedelta(hours=5), only_due=False)

        assert len(gateway.sent) == 1

    def test_sent_once_per_local_date(self, add_member, gateway):
        add_member("owner", role="owner")

        run_daily_digest(now=DIGEST_TIME)
        run_daily_digest(now=DIGEST_TIME + timedelta(minutes=30))
        run_daily_digest(now=DIGEST_TIME + timedelta(days=1))

        assert len(gateway.sent) == 2

    def test_exempt_from_quiet_hours(self, add_member, gateway):
        add_member("owner", role="owner", quiet_hours=(22, 10))

        report = run_daily_digest(now=DIGEST_TIME)

        assert report.sent == 1

    def test_respects_opt_out(self, add_member, gateway):
        add_member("owner", role="owner", disabled=["daily_digest"])
        add_member("ivan")

        report = run_daily_digest(now=DIGEST_TIME)

        assert report.suppressed == 1
        assert [m["channel_id"] for m in gateway.sent] == ["chat-ivan"]

    def test_tenants_are_isolated(self, tenant, other_tenant, add_member, add_lead, gateway):
        add_member("owner", role="owner")
        add_member("other-owner", role="owner", tenant_obj=other_tenant)
        add_lead()
        add_lead(tenant_obj=other_tenant)
        add_lead(tenant_obj=other_tenant)

        run_daily_digest(now=DIGEST_TIME)

        assert "Total leads: 1" in gateway.sent_to("chat-owner")[0]["text"]
        assert "Total leads: 2" in gateway.sent_to("chat-other-owner")[0]["text"]

    def test_command(self, add_member, gateway):
        add_member("owner", role="owner")

        report = current_domain.process(SendDailyDigest(as_of=DIGEST_TIME + timedelta(hours=3), force=True), asynchronous=False)

        assert report.sent == 1


class TestDigestCounters:
    def test_digest_counts_as_batch_not_reminder(self, add_member, gateway):
        add_member("owner", role="owner")

        report = run_daily_digest(now=DIGEST_TIME)

        assert report.batches == 1
        assert report.reminders_fired == 0


class TestDigestStorageFailure:
    def test_failed_read_leaves_the_day_unclaimed(self, tenant, add_member, gateway, monkeypatch):
        add_member("owner", role="owner")
        repo = current_domain.repository_for(Lead)
        original = type(repo).for_tenant

        def unreachable(self, tenant_id):
            raise ConnectionError("store unreachable")

        monkeypatch.setattr(type(repo), "for_tenant", unreachable)
        report = run_daily_digest(now=DIGEST_TIME)

        assert report.failed_tenants == 1
        assert gateway.sent == []
        assert not get_marker_ledger().is_claimed(str(tenant.id), digest_marker_key("2025-01-15"))

        monkeypatch.setattr(type(repo), "for_tenant", original)
        report = run_daily_digest(now=DIGEST_TIME + timedelta(minutes=15))

        assert report.sent == 1
