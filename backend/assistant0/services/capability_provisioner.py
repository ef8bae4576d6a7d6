"""Capability Provisioner - credential acquisition + capability assembly for one request.

Invariants:
    - acquire_credential() never raises: typed failures, transport errors, timeouts
      and anything unexpected all become a CredentialOutcome
    - provision() never raises and always returns the non-empty base set
    - No credential-requiring capabilities configured -> base set, no note,
      identity provider not called

Design Decisions:
    - The pure rules live in core/provisioning.py; this module is the thin
      impure shell that talks to the identity provider
"""

import logging
from collections.abc import Sequence

from assistant0.core.credentials import CredentialOutcome
from assistant0.core.errors import CredentialError
from assistant0.core.provisioning import (
    Capability,
    ExtendedBuilder,
    ProvisionResult,
    provision,
)
from assistant0.infrastructure.token_vault import AccessTokenProvider

logger = logging.getLogger(__name__)


async def acquire_credential(
    provider: AccessTokenProvider, subject_token: str | None, connection: str,
) -> CredentialOutcome:
    """Ask the identity provider for a token; convert every failure to an outcome."""
    try:
        token = await provider.get_access_token(subject_token, connection)
    except CredentialError as e:
        logger.warning(
            "Google access token unavailable: %s", e.message,
            extra={"credential_status": e.reason.value},
        )
        return CredentialOutcome.from_error(e)
    except Exception as e:
        logger.error("Google API access error: %s", e, exc_info=True)
        return CredentialOutcome.unavailable(str(e) or type(e).__name__)

    if not token:
        logger.warning("No Google access token available - falling back to basic tools")
        return CredentialOutcome.absent()
    logger.info("Successfully retrieved Google access token, initializing tools")
    return CredentialOutcome.ok(token)


class CapabilityProvisioner:
    """provision(subject_token?) -> ProvisionResult, for one request."""

    def __init__(
        self,
        base: Sequence[Capability],
        token_provider: AccessTokenProvider | None = None,
        build_extended: ExtendedBuilder | None = None,
        connection: str = "google-oauth2",
    ):
        self.base = tuple(base)
        self.token_provider = token_provider
        self.build_extended = build_extended
        self.connection = connection

    @property
    def extended_configured(self) -> bool:
        return self.token_provider is not None and self.build_extended is not None

    async def provision(self, subject_token: str | None) -> ProvisionResult:
        if not self.extended_configured:
            return ProvisionResult(self.base)
        outcome = await acquire_credential(
            self.token_provider, subject_token, self.connection,
        )
        result = provision(outcome, self.base, self.build_extended)
        logger.info(
            "Capabilities provisioned: %s", ", ".join(result.names),
            extra={
                "credential_status": outcome.status.value,
                "capability_count": len(result.capabilities),
            },
        )
        return result
