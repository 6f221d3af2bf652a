"""
Identity context of the caller.

The identity provider authenticates users; this API only trusts the
claims of the bearer token it issued.  ``UserContext`` carries those
claims explicitly into every service call instead of relying on a
process-wide "current user".
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class UserContext(BaseModel):
    """Authenticated user as seen by the request lifecycle services."""

    user_id: str = Field(..., min_length=1, description="Identity provider user id")
    email: Optional[str] = Field(default=None, description="Email address, used for confirmations")
    display_name: Optional[str] = Field(default=None, description="Name shown to staff")
    role: Literal["client", "staff"] = "client"

    @property
    def is_staff(self) -> bool:
        return self.role == "staff"
