"""Identity resolution and route authorization."""
from dataclasses import dataclass
from typing import Optional

from tutor_portal.config import Settings
from tutor_portal.errors import AccessDenied

PUBLIC_PATHS = ("/", "/book", "/contact")
ADMIN_PREFIX = "/admin"
SIGN_IN_PATH = "/sign-in"
DASHBOARD_PATH = "/dashboard"


@dataclass(frozen=True)
class Identity:
    email: Optional[str]
    is_admin: bool = False

    @property
    def is_authenticated(self) -> bool:
        return bool(self.email)


def resolve_identity(email: Optional[str], settings: Settings) -> Identity:
    """Turn the identity provider's email into an Identity with its admin capability."""
    email = (email or "").strip() or None
    if email is None:
        return Identity(email=None)
    is_admin = email.lower() == settings.ADMIN_EMAIL.strip().lower()
    return Identity(email=email, is_admin=is_admin)


def authorize(path: str, identity: Identity) -> Optional[str]:
    """Return None if ``identity`` may open ``path``, else the path to redirect to."""
    if path in PUBLIC_PATHS:
        return None
    if not identity.is_authenticated:
        return SIGN_IN_PATH
    if (path == ADMIN_PREFIX or path.startswith(ADMIN_PREFIX + "/")) and not identity.is_admin:
        return DASHBOARD_PATH
    return None


def require_admin(identity: Identity) -> None:
    if not identity.is_admin:
        raise AccessDenied("Teacher tools are only available to the admin account")
