import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import ADMIN_API_KEYS
from .shared.errors import AuthenticationError
from .webhook_security import constant_time_compare

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Actor:
    """Authenticated admin; ``id`` is recorded as changed_by in booking history"""

    id: str


def parse_admin_keys(raw: str) -> dict[str, str]:
    """
    Parse "actor_id:token,actor_id:token" into {token: actor_id}.

    Malformed entries are skipped with a warning.
    """
    keys = {}
    for entry in (raw or "").split(","):
        entry = entry.strip()
        if not entry:
            continue
        actor_id, sep, token = entry.partition(":")
        if not sep or not actor_id.strip() or not token.strip():
            logger.warning("⚠️ Ignoring malformed ADMIN_API_KEYS entry")
            continue
        keys[token.strip()] = actor_id.strip()
    return keys


_admin_keys = parse_admin_keys(ADMIN_API_KEYS)


def resolve_actor(token: str, keys: Optional[dict[str, str]] = None) -> Optional[Actor]:
    """Find the actor owning ``token`` using a constant-time comparison"""
    keys = _admin_keys if keys is None else keys
    match = None
    for known_token, actor_id in keys.items():
        if constant_time_compare(known_token, token):
            match = Actor(id=actor_id)
    return match


async def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Actor:
    """Get the admin actor from the Bearer token"""
    if not credentials or not credentials.credentials:
        logger.warning("⚠️ Admin request without credentials")
        raise AuthenticationError(
            "Not authenticated. Please provide a valid Bearer token in the Authorization header."
        )

    actor = resolve_actor(credentials.credentials)
    if actor is None:
        logger.warning(f"⚠️ Rejected admin token (length {len(credentials.credentials)})")
        raise AuthenticationError("Invalid admin token")

    logger.debug(f"✅ Admin authenticated: {actor.id}")
    return actor
