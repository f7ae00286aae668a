from __future__ import annotations

import logging
from datetime import date

from bizfin.domain.errors import (
    AlreadyRolledOverError,
    DataAccessError,
    NoSourceExpensesError,
    PartialRolloverError,
)
from bizfin.domain.models import FixedExpense, PaymentStatus
from bizfin.domain.periods import first_of_month, previous_month

log = logging.getLogger("bizfin.rollover")


def clone_for_month(source: FixedExpense, target_month: date) -> FixedExpense:
    """New month's copy of `source`: unpaid, lineage pointing at the first occurrence."""
    return FixedExpense(
        description=source.description,
        amount=source.amount,
        category=source.category,
        due_day=source.due_day,
        reference_month=first_of_month(target_month),
        payment_status=PaymentStatus.PENDING,
        active=source.active,
        origin_expense_id=source.origin_expense_id if source.origin_expense_id is not None else source.id,
        notes=source.notes,
    )


class RolloverService:
    def __init__(self, repo):
        self.repo = repo

    def rollover(self, target_month: date) -> list[FixedExpense]:
        """
        Copy last month's active fixed expenses into `target_month`.

        Refuses with AlreadyRolledOverError when the target month already has
        fixed expenses and with NoSourceExpensesError when the previous month
        has no active ones. The insert is all-or-nothing; if the store fails
        after some rows landed anyway, PartialRolloverError is raised.
        """
        target = first_of_month(target_month)
        source_month = previous_month(target)

        if self.repo.fetch_fixed_expenses_for_month(target):
            log.info("rollover_refused reason=already_rolled_over target=%s", target.isoformat())
            raise AlreadyRolledOverError(f"Fixed expenses for {target:%Y-%m} already exist.")

        sources = self.repo.fetch_fixed_expenses_for_month(source_month, active_only=True)
        if not sources:
            log.info("rollover_refused reason=no_source source=%s", source_month.isoformat())
            raise NoSourceExpensesError(f"No active fixed expenses in {source_month:%Y-%m} to carry forward.")

        clones = [clone_for_month(s, target) for s in sources]
        try:
            created = self.repo.bulk_insert_expenses(clones)
        except DataAccessError as exc:
            landed = self.repo.fetch_fixed_expenses_for_month(target)
            if landed:
                log.error(
                    "rollover_partial target=%s inserted=%d expected=%d",
                    target.isoformat(), len(landed), len(clones),
                )
                raise PartialRolloverError(
                    f"Rollover into {target:%Y-%m} stopped after {len(landed)} of {len(clones)} expenses.",
                    inserted=len(landed),
                ) from exc
            raise

        log.info("rollover_done source=%s target=%s created=%d", source_month.isoformat(), target.isoformat(), len(created))
        return created
