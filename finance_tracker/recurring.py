"""Scheduling of recurring expenses such as rent or subscriptions.

A recurring definition sits in a scheduled state until its ``next_due_date``
arrives.  Each time it is due the host asks for one concrete expense
instance and then advances the definition by one frequency step.  The two
must be persisted together: ``advance`` alone skips a cycle, ``generate``
alone produces the same instance again on the next run.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .aggregation import validate_amount
from .errors import InvalidAmount, InvalidFrequency
from .models import FREQUENCIES, Expense, RecurringExpense, new_id
from .periods import add_by_frequency, to_date

IdFactory = Callable[[], str]

# Approximate number of occurrences per month, used for budgeting views.
MONTHLY_MULTIPLIERS = {
    'daily': 365 / 12,
    'weekly': 52 / 12,
    'monthly': 1.0,
    'yearly': 1 / 12,
}


def is_due(definition: RecurringExpense, today: Any) -> bool:
    """True when the definition is active and due on or before ``today``."""
    return definition.is_active and to_date(definition.next_due_date) <= to_date(today)


def is_ended(definition: RecurringExpense, today: Any) -> bool:
    return definition.end_date is not None and to_date(definition.end_date) < to_date(today)


def _should_generate(definition: RecurringExpense, today: date) -> bool:
    if not is_due(definition, today) or is_ended(definition, today):
        return False
    if definition.frequency not in FREQUENCIES:
        return False
    try:
        validate_amount(definition.amount, definition.id)
    except InvalidAmount:
        return False
    return True


def build_instance(
    definition: RecurringExpense,
    today: Any,
    id_factory: Optional[IdFactory] = None,
) -> Expense:
    """Synthesize the expense a definition produces on ``today``."""
    make_id = id_factory or (lambda: new_id('expense'))
    return Expense(
        id=make_id(),
        amount=float(definition.amount),
        category=definition.category,
        date=to_date(today),
        note=definition.note or definition.title,
        payment_method=definition.payment_method,
        is_recurring=True,
        recurring_id=definition.id,
        profile_id=definition.profile_id,
    )


def generate_due_instances(
    definitions: Sequence[RecurringExpense],
    today: Any,
    *,
    id_factory: Optional[IdFactory] = None,
) -> List[Expense]:
    """Return one new expense per due, active definition.

    Inactive, not-yet-due and ended definitions are skipped, as are
    definitions with an unknown frequency or an invalid amount; one bad
    definition never prevents the others from generating.  No attempt is
    made to detect instances generated by an earlier call.
    """
    day = to_date(today)
    return [
        build_instance(definition, day, id_factory)
        for definition in definitions
        if _should_generate(definition, day)
    ]


def advance(definition: RecurringExpense) -> RecurringExpense:
    """Move ``next_due_date`` forward by one frequency step."""
    if definition.frequency not in FREQUENCIES:
        raise InvalidFrequency(definition.frequency)
    return replace(
        definition,
        next_due_date=add_by_frequency(definition.next_due_date, definition.frequency),
    )


def materialize(
    definitions: Sequence[RecurringExpense],
    today: Any,
    *,
    id_factory: Optional[IdFactory] = None,
) -> List[Tuple[Expense, RecurringExpense]]:
    """Pair every generated instance with its advanced definition."""
    day = to_date(today)
    pairs: List[Tuple[Expense, RecurringExpense]] = []
    for definition in definitions:
        if not _should_generate(definition, day):
            continue
        pairs.append((build_instance(definition, day, id_factory), advance(definition)))
    return pairs


def upcoming(
    definitions: Sequence[RecurringExpense],
    today: Any,
    days_ahead: int,
) -> List[RecurringExpense]:
    """Active definitions falling due within ``days_ahead`` days, soonest first."""
    start = to_date(today)
    horizon = start + timedelta(days=days_ahead)
    due_soon = [
        definition for definition in definitions
        if definition.is_active
        and not is_ended(definition, start)
        and start <= to_date(definition.next_due_date) <= horizon
    ]
    return sorted(due_soon, key=lambda d: to_date(d.next_due_date))


def monthly_commitment(definitions: Sequence[RecurringExpense]) -> float:
    """Estimated monthly cost of all active definitions."""
    total = 0.0
    for definition in definitions:
        multiplier = MONTHLY_MULTIPLIERS.get(definition.frequency)
        if not definition.is_active or multiplier is None:
            continue
        try:
            total += validate_amount(definition.amount, definition.id) * multiplier
        except InvalidAmount:
            continue
    return round(total, 2)
