"""
API key access for the Pick Edge API.

Two roles.  Readers may list picks, view edges, duplicate groups and
performance.  Admins may also run the operations in ``ADMIN_OPERATIONS``:
score entry, batch commits, duplicate cleanup and edge backfill.

Keys come from comma-separated environment variables::

    PICKEDGE_ADMIN_KEYS=key-a,key-b
    PICKEDGE_READER_KEYS=key-c

A key is never logged; principals are identified as ``admin-1``,
``reader-2`` and so on.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv
from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

load_dotenv()

logger = logging.getLogger(__name__)

API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)

READER = "reader"
ADMIN = "admin"

ADMIN_KEYS_VAR = "PICKEDGE_ADMIN_KEYS"
READER_KEYS_VAR = "PICKEDGE_READER_KEYS"
DEV_API_KEY = "dev-key-insecure"

ADMIN_OPERATIONS = frozenset({
    "enter_scores",
    "commit_batch",
    "clean_duplicates",
    "backfill_edges",
})


@dataclass(frozen=True)
class ApiPrincipal:
    key_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN


def _split_keys(raw: Optional[str]) -> list:
    return [k.strip() for k in (raw or "").split(",") if k.strip()]


def load_api_keys(environ: Optional[Mapping[str, str]] = None) -> Dict[str, ApiPrincipal]:
    """
    Map of API key -> principal.

    Admin keys are read last, so a key listed under both roles is an admin.
    With no keys at all, ``ENVIRONMENT=development`` gets a single insecure
    admin key; anything else is a configuration error.
    """
    env = os.environ if environ is None else environ
    keys: Dict[str, ApiPrincipal] = {}
    for role, var in ((READER, READER_KEYS_VAR), (ADMIN, ADMIN_KEYS_VAR)):
        for n, key in enumerate(_split_keys(env.get(var)), start=1):
            keys[key] = ApiPrincipal(key_id=f"{role}-{n}", role=role)

    if not keys:
        if env.get("ENVIRONMENT") == "development":
            logger.warning("No API keys configured; accepting the development admin key")
            keys[DEV_API_KEY] = ApiPrincipal(key_id="dev", role=ADMIN)
        else:
            raise ValueError(f"No API keys configured! Set {ADMIN_KEYS_VAR} in environment")

    return keys


API_KEYS = load_api_keys()


async def require_reader(api_key: str = Security(API_KEY_HEADER)) -> ApiPrincipal:
    """Any configured key.  Missing or unknown keys get 401."""
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required. Include 'X-API-Key' header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    principal = API_KEYS.get(api_key)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )
    return principal


def require_admin(operation: str):
    """
    Dependency guarding one mutating operation.

    Usage:
        @app.put("/api/picks/{pick_id}/scores")
        async def enter_scores(principal=Depends(require_admin("enter_scores"))):
            ...
    """
    if operation not in ADMIN_OPERATIONS:
        raise ValueError(f"unknown admin operation {operation!r}")

    async def dependency(principal: ApiPrincipal = Security(require_reader)) -> ApiPrincipal:
        if not principal.is_admin:
            logger.warning("Denied %s to %s", operation, principal.key_id)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Admin key required to {operation.replace('_', ' ')}",
            )
        return principal

    return dependency
