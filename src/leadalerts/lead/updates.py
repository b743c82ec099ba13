"""UpdateLead command + handler — partial lead updates from the CRM."""

from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from leadalerts.domain import leadalerts
from leadalerts.lead.lead import Lead
from leadalerts.lead.status import LeadStatus

# Command fields forwarded to Lead.apply_changes when present
_UPDATABLE = (
    "status",
    "assigned_to",
    "next_date",
    "next_time",
    "consult_at",
    "deposit_amount",
    "total_amount",
    "notes",
)


@leadalerts.command(part_of="Lead")
class UpdateLead:
    """Change lead fields. Omitted fields stay as they are.

    ``clear_fields`` names fields to reset to empty, since an omitted field
    and an explicit null cannot be told apart on a command.
    """

    lead_id: Identifier(required=True)
    status: String(choices=LeadStatus)
    assigned_to: String(max_length=128)
    next_date: String(max_length=10)
    next_time: String(max_length=8)
    consult_at: String(max_length=20)
    deposit_amount: Float()
    total_amount: Float()
    notes: Text()
    clear_fields: Text()  # comma-separated field names


@leadalerts.command_handler(part_of=Lead)
class UpdateLeadHandler:
    @handle(UpdateLead)
    def update_lead(self, command: UpdateLead):
        repo = current_domain.repository_for(Lead)
        lead = repo.get(command.lead_id)

        changes = {field: getattr(command, field) for field in _UPDATABLE if getattr(command, field) is not None}
        for field in (command.clear_fields or "").split(","):
            field = field.strip()
            if field:
                changes[field] = None

        changed = lead.apply_changes(**changes)
        if changed:
            repo.add(lead)
        return changed
