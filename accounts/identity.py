"""
Session identity snapshot.

The ``Teacher`` row is the source of truth for role and organization. At
sign-in a denormalised snapshot is written into the session and every later
request reads that snapshot instead of the database. The snapshot is only
recomputed at the next sign-in, so role or organization changes made by an
admin take effect when the user signs in again.
"""
from dataclasses import asdict, dataclass
from typing import Optional

from django.contrib.auth import SESSION_KEY as AUTH_SESSION_KEY

SESSION_IDENTITY_KEY = "tt_identity"


@dataclass(frozen=True)
class SessionIdentity:
    email: str
    role: str
    organization_id: Optional[str] = None
    organization_name: Optional[str] = None
    organization_domain: Optional[str] = None
    display_name: str = ""

    @property
    def is_superadmin(self):
        return self.role == "superadmin"

    @property
    def email_domain(self):
        return self.email.rsplit("@", 1)[-1] if "@" in self.email else ""

    @classmethod
    def from_teacher(cls, teacher):
        org = teacher.organization
        return cls(
            email=teacher.email,
            role=teacher.role,
            organization_id=str(org.id) if org else None,
            organization_name=org.name if org else None,
            organization_domain=org.domain if org else None,
            display_name=teacher.display_name,
        )


def store_identity(request, identity):
    request.session[SESSION_IDENTITY_KEY] = asdict(identity)


def get_identity(request) -> Optional[SessionIdentity]:
    """Snapshot for the current session, or None when not signed in."""
    session = getattr(request, "session", None)
    if session is None or AUTH_SESSION_KEY not in session:
        return None
    raw = session.get(SESSION_IDENTITY_KEY)
    if not raw:
        return None
    try:
        return SessionIdentity(**raw)
    except TypeError:
        return None
