"""Capability Provisioning - pure mapping from credential outcome to a capability set.

Invariants:
    - provision() never raises: every failure in the extended path degrades
    - The base capability set is always present, in its configured order
    - degradation_note is None exactly when nothing was taken away
    - Result is immutable (tuples, frozen dataclasses)

Design Decisions:
    - build_extended is injected: this module stays free of HTTP and tool code,
      so every credential state is testable with a lambda
    - Extended capabilities are appended after the base ones: the agent sees
      calculator/search first in its tool listing
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from assistant0.core.credentials import CredentialOutcome
from assistant0.core.degradation import classify_failure, error_note, note_for_outcome

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict], Awaitable[dict]]


@dataclass(frozen=True)
class Capability:
    """A tool the agent may call: name + JSON schema + invocation adapter."""
    name: str
    description: str
    parameters: dict[str, Any]
    handler: ToolHandler = field(compare=False, repr=False)
    requires_credential: bool = False

    def declaration(self) -> dict:
        """Function declaration in the shape the model SDK expects."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


@dataclass(frozen=True)
class ProvisionResult:
    capabilities: tuple[Capability, ...]
    degradation_note: str | None = None

    @property
    def degraded(self) -> bool:
        return self.degradation_note is not None

    @property
    def names(self) -> list[str]:
        return [c.name for c in self.capabilities]


ExtendedBuilder = Callable[[str], Sequence[Capability]]


def provision(
    outcome: CredentialOutcome | None,
    base: Sequence[Capability],
    build_extended: ExtendedBuilder | None = None,
) -> ProvisionResult:
    """Assemble the capability set for one request.

    outcome None or build_extended None means no credential-requiring
    capabilities are configured: base set, no note.
    """
    base_set = tuple(base)
    if build_extended is None or outcome is None:
        return ProvisionResult(base_set)

    if not outcome.usable:
        logger.warning(
            "Google credential not usable - falling back to basic tools",
            extra={"credential_status": outcome.status.value},
        )
        return ProvisionResult(
            base_set, note_for_outcome(outcome.status, outcome.detail),
        )

    try:
        extended = tuple(build_extended(outcome.access_token))
    except Exception as e:
        logger.error("Failed to build Google tools: %s", e, exc_info=True)
        return degrade_after_failure(base_set, e)

    return ProvisionResult(base_set + extended)


def degrade_after_failure(
    base: Sequence[Capability], error: BaseException,
) -> ProvisionResult:
    """Base set + error-specific note, used when extended tools blew up."""
    hint = classify_failure(str(error))
    return ProvisionResult(tuple(base), error_note(hint))
