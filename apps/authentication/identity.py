"""
Identity descriptor handed to the lifecycle services, and the rider directory they consult.

Services never see a request; views resolve the authenticated Agent into an Identity.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from apps.authentication.models import Agent, RiderProfile


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: str
    rider_code: Optional[str] = None
    account_no: Optional[str] = None
    display_name: str = ""

    @classmethod
    def from_user(cls, user: Agent) -> "Identity":
        rider_code = None
        if user.role == Agent.Role.RIDER:
            profile = RiderProfile.objects.filter(agent=user).only("rider_code").first()
            rider_code = profile.rider_code if profile else None
        return cls(
            user_id=str(user.pk),
            role=user.role,
            rider_code=rider_code,
            account_no=user.account_no,
            display_name=user.full_name,
        )

    @classmethod
    def system(cls) -> "Identity":
        return cls(user_id="system", role=Agent.Role.ADMIN, display_name="system")

    @property
    def is_rider(self):
        return self.role == Agent.Role.RIDER

    @property
    def is_customer(self):
        return self.role == Agent.Role.CUSTOMER

    @property
    def is_back_office(self):
        return self.role in Agent.BACK_OFFICE

    @property
    def is_admin(self):
        return self.role == Agent.Role.ADMIN

    @property
    def signature(self):
        """How this actor is named in consignment remarks."""
        return self.rider_code or self.user_id


def parse_agent_id(value) -> Optional[uuid.UUID]:
    """Return the UUID for a rider/agent id, or None when it is malformed."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


class RiderDirectory:
    """Lookup of riders that may hold assignments and register returns."""

    def find_active_rider(self, rider_id) -> Optional[Agent]:
        pk = parse_agent_id(rider_id)
        if pk is None:
            return None
        return (
            Agent.objects
            .select_related("rider_profile")
            .filter(
                pk=pk,
                role=Agent.Role.RIDER,
                is_active=True,
                rider_profile__active=True,
            )
            .first()
        )

    def active_riders(self):
        return (
            RiderProfile.objects
            .select_related("agent")
            .filter(active=True, agent__is_active=True, agent__role=Agent.Role.RIDER)
            .order_by("agent__full_name")
        )
