"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations inside service layers
and the lifecycle engine.  They are deliberately **not** DRF exceptions so
that the domain layer stays framework-agnostic.  The global DRF exception
handler (``core.domain.exception_handler``) maps them to HTTP responses.

Every rejection carries a stable machine-readable ``code`` so clients can
branch on the *kind* of rejection without parsing the message.

Mapping cheatsheet
------------------
┌─────────────────────┬───────────────────────┬──────┬──────────────────────┐
│ Domain Exception    │ Meaning               │ Code │ ``code`` attribute   │
├─────────────────────┼───────────────────────┼──────┼──────────────────────┤
│ DomainError         │ generic rule broken   │ 400  │ invalid              │
│ InvalidInput        │ bad / missing input   │ 400  │ invalid_input        │
│ PermissionDenied    │ role / scope mismatch │ 403  │ forbidden            │
│ NotFound            │ missing reference     │ 404  │ not_found            │
│ Conflict            │ state conflict        │ 409  │ conflict             │
│ PreconditionFailed  │ wrong current state   │ 409  │ precondition_failed  │
│ InvalidTransition   │ illegal status move   │ 409  │ precondition_failed  │
│ SideEffectFailure   │ post-commit failure   │  —   │ side_effect_failed   │
└─────────────────────┴───────────────────────┴──────┴──────────────────────┘

``SideEffectFailure`` is never surfaced over HTTP: the orchestrator
catches and logs it after the state change has committed.

Recommended usage inside a service::

    from core.domain.exceptions import InvalidTransition

    if case.status not in transition.sources:
        raise InvalidTransition(
            current=case.status,
            target=transition.target,
            reason="Case is not under hearing.",
        )
"""

from __future__ import annotations


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Catch this at the view boundary and convert to a 400 Bad Request.
    """

    code = "invalid"

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class InvalidInput(DomainError):
    """
    The request payload is missing a required value or a value is
    malformed (bad date, remark too short, missing attachment).

    Maps to HTTP 400.
    """

    code = "invalid_input"

    def __init__(self, message: str = "The request input is invalid.") -> None:
        super().__init__(message)


class PermissionDenied(DomainError):
    """
    The authenticated user does not have the required role, does not own
    the case, or is outside the case's district.

    Maps to HTTP 403.
    """

    code = "forbidden"

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """
    The requested resource does not exist.

    Maps to HTTP 404.
    """

    code = "not_found"

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Maps to HTTP 409.
    """

    code = "conflict"

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class PreconditionFailed(Conflict):
    """
    The resource is not in a state that allows the requested action:
    wrong status, already closed, or the hearing history does not match
    (first vs. subsequent hearing).

    Maps to HTTP 409.
    """

    code = "precondition_failed"

    def __init__(self, message: str = "A precondition for this action failed.") -> None:
        super().__init__(message)


class InvalidTransition(PreconditionFailed):
    """
    A state-machine transition that is not allowed from the current status.

    Example::

        raise InvalidTransition(
            current="submitted",
            target="approved_resolved",
            reason="Case is not under hearing.",
        )
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            if reason:
                message = reason
            else:
                parts = ["Invalid state transition"]
                if current and target:
                    parts.append(f"from '{current}' to '{target}'")
                message = " ".join(parts) + "."
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason


class SideEffectFailure(DomainError):
    """
    A notification, e-mail, or audit write failed *after* the transition
    committed.  Logged and reported in the result envelope only.
    """

    code = "side_effect_failed"

    def __init__(self, effect: str, cause: BaseException) -> None:
        super().__init__(f"Side effect '{effect}' failed: {cause}")
        self.effect = effect
        self.cause = cause
