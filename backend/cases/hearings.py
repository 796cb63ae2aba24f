"""
cases.hearings — Hearing sequencing rules.

Pure helpers (``latest_hearing``, ``hearing_count``, ``next_sequence``)
work on any iterable of hearing-like objects exposing ``sequence_no``,
so the lifecycle engine can reason about a snapshot without touching
the database.

The mutating helpers must run inside ``transaction.atomic()`` while the
case row is locked (``core.domain.transactions.lock_for_update``).
Activation always bulk-deactivates first and creates second; the
partial unique constraint on ``Hearing(case) WHERE is_active`` rejects
any interleaving that would leave two active hearings.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from .models import Case, CaseDocument, Hearing


def latest_hearing(hearings: Iterable[Any]) -> Any | None:
    """Hearing with the highest ``sequence_no``, or ``None``."""
    latest = None
    for hearing in hearings:
        if latest is None or hearing.sequence_no > latest.sequence_no:
            latest = hearing
    return latest


def hearing_count(hearings: Sequence[Any]) -> int:
    return len(hearings)


def next_sequence(hearings: Iterable[Any]) -> int:
    latest = latest_hearing(hearings)
    return 1 if latest is None else latest.sequence_no + 1


def load_hearings(case: Case) -> list[Hearing]:
    """Snapshot of a case's hearings in sequence order."""
    return list(Hearing.objects.filter(case=case).order_by("sequence_no"))


def deactivate_all(case: Case) -> int:
    """Mark every hearing of ``case`` inactive; returns the row count."""
    return Hearing.objects.filter(case=case, is_active=True).update(is_active=False)


def activate_new_hearing(case: Case, **fields: Any) -> Hearing:
    """
    Create the next-sequence hearing as the case's only active hearing.

    ``fields`` are passed to ``Hearing.objects.create`` (``scheduled_for``,
    ``hearing_type``, ``scheduled_by``).  ``sequence_no`` and ``is_active``
    are always computed here.
    """
    deactivate_all(case)
    sequence_no = next_sequence(Hearing.objects.filter(case=case).only("sequence_no"))
    fields.pop("sequence_no", None)
    fields.pop("is_active", None)
    return Hearing.objects.create(
        case=case,
        sequence_no=sequence_no,
        is_active=True,
        **fields,
    )


def attach_order_to_latest(case: Case, document: CaseDocument) -> Hearing | None:
    """Link a hearing-order document to the latest hearing of ``case``."""
    latest = Hearing.objects.filter(case=case).order_by("-sequence_no").first()
    if latest is None:
        return None
    latest.hearing_order = document
    latest.save(update_fields=["hearing_order", "updated_at"])
    return latest
