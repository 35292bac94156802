from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from db.models import Role
from services import auth
from services.context import ANONYMOUS, RequestContext


@dataclass
class GlobalState:
    """
    Centralized application state shared by screens.

    Fields:
      - context: identity passed to every service call
      - username: login name shown in the sidebar
    """

    context: RequestContext = field(default=ANONYMOUS)
    username: Optional[str] = None

    @property
    def role(self) -> Role:
        return self.context.role

    @property
    def customer_id(self) -> Optional[int]:
        return self.context.customer_id

    async def login(self, username: str, password: str, as_admin: bool = False) -> bool:
        """Authenticate and store the resulting context. True on success."""
        if as_admin:
            ctx = await auth.admin_login(username, password)
        else:
            ctx = await auth.customer_login(username, password)
        if ctx is None:
            return False
        self.context = ctx
        self.username = username
        return True

    def logout(self) -> None:
        self.context = ANONYMOUS
        self.username = None
