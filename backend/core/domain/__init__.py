"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions         Domain-specific exceptions that map cleanly to HTTP responses.
exception_handler  DRF exception handler for the exceptions above.
access             Role policy: actor classification, ownership, district scope.
transactions       Row locking and compare-and-set assignment helpers.
notifications      Idempotent in-app notification creation.
email              Outbound applicant e-mail.
audit              Append-only audit logger.

Usage from any app::

    from core.domain.exceptions import DomainError, InvalidTransition
    from core.domain.access import actor_for, ensure_case_visible
    from core.domain.notifications import NotificationService
    from core.domain.transactions import lock_for_update
"""
