"""Credential Outcome - the result of one identity-provider lookup.

Invariants:
    - access_token is set if and only if status is USABLE
    - Constructed fresh per request, never cached or persisted
"""

from dataclasses import dataclass

from assistant0.core.domain_types import CredentialStatus
from assistant0.core.errors import CredentialError, CredentialFailure


_FAILURE_TO_STATUS = {
    CredentialFailure.ABSENT: CredentialStatus.ABSENT,
    CredentialFailure.EXPIRED: CredentialStatus.EXPIRED,
    CredentialFailure.INSUFFICIENT_SCOPE: CredentialStatus.INSUFFICIENT_SCOPE,
    CredentialFailure.UNAVAILABLE: CredentialStatus.UNAVAILABLE,
}


@dataclass(frozen=True)
class CredentialOutcome:
    status: CredentialStatus
    access_token: str | None = None
    detail: str | None = None

    def __post_init__(self):
        if (self.status == CredentialStatus.USABLE) != bool(self.access_token):
            raise ValueError("access_token must be set exactly when usable")

    @property
    def usable(self) -> bool:
        return self.status == CredentialStatus.USABLE

    @classmethod
    def ok(cls, token: str) -> "CredentialOutcome":
        return cls(CredentialStatus.USABLE, access_token=token)

    @classmethod
    def absent(cls, detail: str | None = None) -> "CredentialOutcome":
        return cls(CredentialStatus.ABSENT, detail=detail)

    @classmethod
    def from_error(cls, error: CredentialError) -> "CredentialOutcome":
        return cls(_FAILURE_TO_STATUS[error.reason], detail=error.message)

    @classmethod
    def unavailable(cls, detail: str) -> "CredentialOutcome":
        return cls(CredentialStatus.UNAVAILABLE, detail=detail)
