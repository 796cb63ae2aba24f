"""
core.domain.transactions — Helpers for safe state transitions.

Two concurrency guarantees are needed by the case lifecycle:

* **Per-case serialization.**  Every read-validate-write sequence on a
  case runs while holding a row lock on that case
  (``select_for_update``), so two concurrent schedule / adjourn requests
  on the same case cannot both observe the same "latest hearing" and
  leave zero or two active hearings behind.
* **Compare-and-set assignment.**  Assignment slots
  (``assigned_registrar``, ``assigned_hearing_officer``) are only ever
  filled from ``NULL`` with a conditional ``UPDATE … WHERE field IS NULL``.
  The caller learns whether *it* won the slot and only the winner emits
  the assignment notification.

Usage::

    from core.domain.transactions import assign_if_unset, lock_for_update

    with transaction.atomic():
        case = lock_for_update(Case, case_id)
        ...
        won = assign_if_unset(case, "assigned_registrar", user.pk)
"""

from __future__ import annotations

from typing import Any, TypeVar

from django.db import models

from core.domain.exceptions import NotFound

M = TypeVar("M", bound=models.Model)


def lock_for_update(model_class: type[M], pk: Any, *, label: str | None = None) -> M:
    """
    Acquire a row-level lock on the given model instance.

    Convenience wrapper around ``select_for_update().get(pk=pk)``
    that must be called inside an ``atomic()`` block.

    Args:
        model_class: The Django model class.
        pk:          Primary key value.
        label:       Human name used in the ``NotFound`` message
                     (defaults to the model class name).

    Returns:
        The locked model instance.

    Raises:
        NotFound: If no row with that PK exists.
    """
    try:
        return model_class.objects.select_for_update().get(pk=pk)
    except (model_class.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"{label or model_class.__name__} not found.")


def assign_if_unset(instance: models.Model, field_name: str, value: Any) -> bool:
    """
    Set ``<field_name>_id`` to ``value`` only if it is currently NULL.

    Issues a single conditional ``UPDATE`` so that of two concurrent
    writers exactly one succeeds.  On success the in-memory ``instance``
    is updated as well.

    Args:
        instance:   The (usually locked) model instance.
        field_name: Name of a nullable ``ForeignKey`` on the model.
        value:      Primary key to store.

    Returns:
        ``True`` if this call performed the assignment, ``False`` if the
        slot was already taken.
    """
    if value is None:
        return False

    attname = f"{field_name}_id"
    model_class = type(instance)
    updated = (
        model_class.objects
        .filter(pk=instance.pk, **{f"{attname}__isnull": True})
        .update(**{attname: value})
    )
    if updated:
        setattr(instance, attname, value)
        return True
    return False
