"""Degradation Notes - text appended to the behavior template when Google tools are off.

Invariants:
    - Every note names Gmail and Calendar as unavailable
    - Every note tells the user to sign out, then sign back in
    - classify_failure() maps free-form provider errors to one of three hints:
      insufficient scope, invalid/expired token, generic

Design Decisions:
    - Note text goes to the model, not the UI: the assistant explains the reduced
      functionality in its own reply instead of failing tool calls silently
"""

from assistant0.core.domain_types import CredentialStatus

UNAVAILABLE_SERVICES = "Google integrations (Gmail, Calendar)"

REMEDIATION = (
    "To fix this issue: Please sign out, then sign back in and make sure "
    "to allow all requested permissions."
)

HINT_INSUFFICIENT_SCOPE = (
    "Insufficient Google API permissions. The app needs additional "
    "permissions to access your Google data."
)
HINT_TOKEN = (
    "Authentication token error. Please try logging out and back in to "
    "refresh your permissions."
)
HINT_GENERIC = "Google integration error"


def classify_failure(detail: str | None) -> str:
    """Map a provider/construction error message to a remediation hint."""
    text = (detail or "").lower()
    if "insufficient authentication scopes" in text or "insufficient_scope" in text \
            or "insufficient scope" in text:
        return HINT_INSUFFICIENT_SCOPE
    if "token" in text:
        return HINT_TOKEN
    return HINT_GENERIC


def hint_for_status(status: CredentialStatus, detail: str | None = None) -> str:
    if status == CredentialStatus.INSUFFICIENT_SCOPE:
        return HINT_INSUFFICIENT_SCOPE
    if status == CredentialStatus.EXPIRED:
        return HINT_TOKEN
    if status == CredentialStatus.UNAVAILABLE:
        return HINT_GENERIC
    return classify_failure(detail)


def permission_note() -> str:
    """Note for a missing credential (nothing went wrong, nothing was granted)."""
    return (
        f"\n\nNOTE: {UNAVAILABLE_SERVICES} are currently unavailable. "
        "You don't have permission to access Google services."
        f"\n\n{REMEDIATION}"
    )


def error_note(hint: str) -> str:
    """Note for a rejected/expired credential or an extended-tool build failure."""
    return (
        f"\n\nNOTE: {UNAVAILABLE_SERVICES} are currently unavailable: "
        f"{hint.rstrip('.')}."
        f"\n\n{REMEDIATION}"
    )


def note_for_outcome(status: CredentialStatus, detail: str | None = None) -> str:
    """Degradation note for a non-usable credential outcome."""
    if status == CredentialStatus.ABSENT:
        return permission_note()
    return error_note(hint_for_status(status, detail))
