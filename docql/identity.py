"""Per-request identity resolution from a bearer credential."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .config import Settings
from .store import Document, DocumentStore

logger = logging.getLogger(__name__)

BEARER_PREFIX = 'bearer '


@dataclass(frozen=True)
class IdentityContext:
    """The subject a request acts as; ``subject`` is None for anonymous requests."""

    subject: Optional[Document] = None
    token: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return self.subject is not None


ANONYMOUS = IdentityContext()


def read_credential(headers: Optional[Mapping[str, Any]], header_name: str = 'Authorization') -> Optional[str]:
    """Return the credential presented in ``headers`` (case-insensitive), if any."""
    if not headers:
        return None
    wanted = header_name.lower()
    raw = None
    for key, value in headers.items():
        if str(key).lower() == wanted:
            raw = value
            break
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode('latin-1')
    cred = str(raw).strip()
    if cred.lower().startswith(BEARER_PREFIX):
        cred = cred[len(BEARER_PREFIX):].strip()
    return cred or None


class IdentityResolver:
    """Resolves the request credential to a subject document.

    The credential is looked up by id in the token collection; the token's
    owner id is then looked up in the subject collection. Every failure along
    the way yields the anonymous context.
    """

    def __init__(self, store: DocumentStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or Settings()

    async def resolve(self, headers: Optional[Mapping[str, Any]]) -> IdentityContext:
        s = self.settings
        credential = read_credential(headers, s.credential_header)
        if credential is None:
            return ANONYMOUS
        try:
            token = await self.store[s.token_type].find_one({s.id_field: credential})
            if token is None:
                logger.debug("unknown credential presented")
                return ANONYMOUS
            subject_id = token.get(s.owner_field)
            if subject_id is None:
                return ANONYMOUS
            subject = await self.store[s.subject_type].find_one({s.id_field: subject_id})
        except Exception as exc:
            # a broken lookup never fails the request
            logger.debug("credential lookup failed: %s", exc)
            return ANONYMOUS
        if subject is None:
            return ANONYMOUS
        return IdentityContext(subject=subject, token=credential)
