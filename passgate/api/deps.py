# passgate/api/deps.py
import logging
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from passgate.core import admin_roles
from passgate.core.config import Settings, get_settings
from passgate.core.exceptions import AuthenticationError, ForbiddenError
from passgate.db.store import get_store
from passgate.schemas.token import AdminContext, TokenPayload
from passgate.services.pass_management.qr_signing import QRTokenSigner

logger = logging.getLogger(__name__)

# The `tokenUrl` doesn't have to be a real endpoint in this service,
# it's just for the OpenAPI documentation.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)


def get_signer(settings: Settings = Depends(get_settings)) -> QRTokenSigner:
    return QRTokenSigner(settings.QR_SECRET_KEY, expiry_days=settings.QR_TOKEN_EXPIRY_DAYS)


def get_client_ip(request: Request) -> Optional[str]:
    """First X-Forwarded-For hop, else X-Real-IP, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


def decode_admin_token(token: str, secret: str) -> TokenPayload:
    if not secret:
        logger.critical("JWT_SECRET not configured; rejecting all admin tokens")
        raise AuthenticationError()
    try:
        payload = jwt.decode(token, secret, algorithms=["HS256"])
        return TokenPayload(**payload)
    except (JWTError, ValueError):
        # Catches any error from jose or Pydantic validation
        raise AuthenticationError()


def get_current_admin(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
) -> AdminContext:
    """Authenticate the bearer token and require an organizer/admin claim."""
    if not token:
        raise AuthenticationError("Missing authorization header")
    claims = decode_admin_token(token, settings.JWT_SECRET)

    has_role_claim = isinstance(claims.role, str) and claims.role.lower() in admin_roles.VALID_ROLES
    if not claims.isOrganizer and not has_role_claim:
        raise ForbiddenError("Forbidden: Organizer access required")

    admin = AdminContext(
        user_id=claims.sub,
        role=admin_roles.parse_role(claims.role),
        ip_address=get_client_ip(request),
    )
    # Lets the rate limiter key on the admin instead of the IP
    request.state.admin_id = admin.user_id
    return admin


def require_role(minimum: str) -> Callable[..., AdminContext]:
    """Dependency factory: the admin must hold at least `minimum`."""

    def dependency(admin: AdminContext = Depends(get_current_admin)) -> AdminContext:
        if not admin_roles.has_at_least(admin.role, minimum):
            raise ForbiddenError()
        return admin

    return dependency


require_manager = require_role("manager")
require_superadmin = require_role("superadmin")
