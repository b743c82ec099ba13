"""Member management commands + handler — roster, channel binding, preferences."""

from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from leadalerts.domain import leadalerts
from leadalerts.member.member import Member, MemberRole
from leadalerts.tenant.tenant import Tenant


@leadalerts.command(part_of="Member")
class AddMember:
    tenant_id: Identifier(required=True)
    user_id: String(required=True, max_length=128)
    display_name: String(max_length=200)
    role: String(choices=MemberRole, default=MemberRole.OTHER.value)


@leadalerts.command(part_of="Member")
class ChangeRole:
    tenant_id: Identifier(required=True)
    user_id: String(required=True, max_length=128)
    role: String(choices=MemberRole, required=True)


@leadalerts.command(part_of="Member")
class BindChannel:
    """Link a member's messaging chat (the bot's deep-link start flow)."""

    tenant_id: Identifier(required=True)
    user_id: String(required=True, max_length=128)
    channel_id: String(required=True, max_length=64)
    channel_name: String(max_length=200)


@leadalerts.command(part_of="Member")
class UnbindChannel:
    tenant_id: Identifier(required=True)
    user_id: String(required=True, max_length=128)


@leadalerts.command(part_of="Member")
class SetQuietHours:
    tenant_id: Identifier(required=True)
    user_id: String(required=True, max_length=128)
    start: Integer(required=True, min_value=0, max_value=23)
    end: Integer(required=True, min_value=0, max_value=23)


@leadalerts.command(part_of="Member")
class ClearQuietHours:
    tenant_id: Identifier(required=True)
    user_id: String(required=True, max_length=128)


@leadalerts.command(part_of="Member")
class DisableCategory:
    tenant_id: Identifier(required=True)
    user_id: String(required=True, max_length=128)
    category: String(required=True, max_length=50)


@leadalerts.command(part_of="Member")
class EnableCategory:
    tenant_id: Identifier(required=True)
    user_id: String(required=True, max_length=128)
    category: String(required=True, max_length=50)


@leadalerts.command_handler(part_of=Member)
class ManageMembersHandler:
    @handle(AddMember)
    def add_member(self, command: AddMember):
        # Raises ObjectNotFoundError for an unknown tenant
        current_domain.repository_for(Tenant).get(command.tenant_id)

        repo = current_domain.repository_for(Member)
        if repo.find_by_user(command.tenant_id, command.user_id) is not None:
            raise ValidationError({"user_id": [f"User {command.user_id} is already a member"]})

        member = Member.join(
            tenant_id=command.tenant_id,
            user_id=command.user_id,
            display_name=command.display_name,
            role=command.role or MemberRole.OTHER.value,
        )
        repo.add(member)
        return str(member.id)

    @handle(ChangeRole)
    def change_role(self, command: ChangeRole):
        repo = current_domain.repository_for(Member)
        member = repo.get_by_user(command.tenant_id, command.user_id)
        member.change_role(command.role)
        repo.add(member)

    @handle(BindChannel)
    def bind_channel(self, command: BindChannel):
        repo = current_domain.repository_for(Member)
        member = repo.get_by_user(command.tenant_id, command.user_id)
        member.bind_channel(command.channel_id, command.channel_name)
        repo.add(member)

    @handle(UnbindChannel)
    def unbind_channel(self, command: UnbindChannel):
        repo = current_domain.repository_for(Member)
        member = repo.get_by_user(command.tenant_id, command.user_id)
        member.unbind_channel()
        repo.add(member)

    @handle(SetQuietHours)
    def set_quiet_hours(self, command: SetQuietHours):
        repo = current_domain.repository_for(Member)
        member = repo.get_by_user(command.tenant_id, command.user_id)
        member.set_quiet_hours(command.start, command.end)
        repo.add(member)

    @handle(ClearQuietHours)
    def clear_quiet_hours(self, command: ClearQuietHours):
        repo = current_domain.repository_for(Member)
        member = repo.get_by_user(command.tenant_id, command.user_id)
        member.clear_quiet_hours()
        repo.add(member)

    @handle(DisableCategory)
    def disable_category(self, command: DisableCategory):
        repo = current_domain.repository_for(Member)
        member = repo.get_by_user(command.tenant_id, command.user_id)
        member.disable_category(command.category)
        repo.add(member)

    @handle(EnableCategory)
    def enable_category(self, command: EnableCategory):
        repo = current_domain.repository_for(Member)
        member = repo.get_by_user(command.tenant_id, command.user_id)
        member.enable_category(command.category)
        repo.add(member)
