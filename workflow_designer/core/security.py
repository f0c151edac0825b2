"""Capability gating for designer operations and password helpers for the sandbox."""
from __future__ import annotations

import binascii
import hashlib
import hmac
import logging
from collections.abc import Iterable

from workflow_designer.config import settings
from workflow_designer.core.exceptions import AccessDenied

logger = logging.getLogger(__name__)


class CapabilityGate:
    """Single authorization check consulted at the start of every mutating operation.

    The gate only knows the role names of the current session. Tests build one
    directly with whatever role set they need.
    """

    def __init__(self, roles: Iterable[str], capability: str | None = None):
        self.roles = frozenset(roles)
        self.capability = capability or settings.designer_capability

    @property
    def allowed(self) -> bool:
        return self.capability in self.roles

    def require(self, action: str) -> None:
        """Raise AccessDenied when the session may not perform ``action``."""
        if not self.allowed:
            logger.warning("Refused '%s' without capability %s", action, self.capability)
            raise AccessDenied(f"Access Denied: Only Workflow Designers can {action}.")


def hash_password(password: str, salt_hex: str, iterations: int = 210000) -> str:
    """Create pbkdf2_sha256 hash string."""
    dk = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), bytes.fromhex(salt_hex), iterations
    )
    digest_hex = binascii.hexlify(dk).decode("ascii")
    return f"pbkdf2_sha256${iterations}${salt_hex}${digest_hex}"


def verify_password(password: str, encoded_hash: str) -> bool:
    """Verify pbkdf2_sha256 hash format: pbkdf2_sha256$iters$salt_hex$digest_hex."""
    try:
        algorithm, iter_str, salt_hex, digest_hex = encoded_hash.split("$", 3)
        if algorithm != "pbkdf2_sha256":
            return False
        expected = hash_password(password, salt_hex=salt_hex, iterations=int(iter_str))
        return hmac.compare_digest(expected, encoded_hash)
    except ValueError:
        return False
