import pytest
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from leadalerts.exceptions import InvalidApiKeyError, StorageUnavailableError
from leadalerts.lead import ingestion
from leadalerts.lead.ingestion import IngestLead
from leadalerts.lead.lead import Lead
from leadalerts.tenant.tenant import Tenant


def _ingest(tenant_id, api_key="clinic-secret", **fields):
    fields.setdefault("phone", "+380501112233")
    return current_domain.process(IngestLead(tenant_id=tenant_id, api_key=api_key, **fields), asynchronous=False)


class TestIngestLead:
    def test_creates_new_lead(self, tenant):
        lead_id = _ingest(str(tenant.id), name="Olena", source="Landing page", problem="Toothache")

        lead = current_domain.repository_for(Lead).get(lead_id)
        assert lead.status == "new"
        assert lead.tenant_id == str(tenant.id)
        assert lead.source == "Landing page"
        assert lead.assigned_to is None

    def test_wrong_key_rejected(self, tenant):
        with pytest.raises(InvalidApiKeyError):
            _ingest(str(tenant.id), api_key="guess")

    def test_missing_key_rejected(self, tenant):
        with pytest.raises(InvalidApiKeyError):
            _ingest(str(tenant.id), api_key=None)

    def test_unknown_tenant(self, tenant):
        with pytest.raises(ObjectNotFoundError):
            _ingest("no-such-tenant")

    def test_contact_required(self, tenant):
        with pytest.raises(ValidationError):
            _ingest(str(tenant.id), phone=None, name="Anonymous")

    def test_tenant_without_key_accepts_any_caller(self):
        open_tenant = Tenant.provision(name="Open Org")
        open_tenant.api_key = None
        current_domain.repository_for(Tenant).add(open_tenant)

        assert _ingest(str(open_tenant.id), api_key=None)

    def test_storage_failure_is_reported(self, tenant, monkeypatch):
        class _UnreachableStore:
            def repository_for(self, aggregate_cls):
                raise ConnectionError("connection refused")

        monkeypatch.setattr(ingestion, "current_domain", _UnreachableStore())

        with pytest.raises(StorageUnavailableError):
            _ingest(str(tenant.id))
