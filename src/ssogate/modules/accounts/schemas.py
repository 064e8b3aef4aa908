"""Account registration schemas."""

from dataclasses import dataclass
from uuid import UUID

from pydantic import BaseModel

from ssogate.modules.users.models import User, UserStatus
from ssogate.modules.workspaces.models import Workspace, WorkspaceMembership


class UserDraft(BaseModel):
    """The user half of a registration request.

    Attributes:
        email: Email to register (or to set on the invited account)
        name: Display name
        status: Status the account should end up in
        user_id: Existing invited account to finalize, if any
    """

    email: str
    name: str
    status: UserStatus = UserStatus.ACTIVE
    user_id: UUID | None = None


@dataclass
class RegisteredAccount:
    """Result of AccountRegistrar.register."""

    user: User
    workspace: Workspace | None
    membership: WorkspaceMembership | None
