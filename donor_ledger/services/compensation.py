"""Compensating deletes for multi-step writes that are not covered by one transaction"""

from dataclasses import dataclass
from typing import Any, Callable, List

from donor_ledger.domain.exceptions import IntegrityFailure
from donor_ledger.infrastructure.observability.logging import log_rollback
from donor_ledger.infrastructure.observability.metrics import rollback_counter


@dataclass
class UndoAction:
    entity: str
    entity_id: Any
    undo: Callable[[], None]


class CompensatingTransactionCoordinator:
    """
    Records how to undo each committed step and replays the undos on failure.

    Usage:
        coordinator = CompensatingTransactionCoordinator()
        plan = create_and_commit_plan()
        coordinator.register("PaymentPlan", plan.id, lambda: delete_and_commit(plan.id))
        try:
            create_and_commit_installments()
        except Exception:
            coordinator.compensate()
            raise

    Undo actions run newest first, each exactly once, with no retries. Every
    action is attempted even when an earlier one fails; the first failure is
    then raised as IntegrityFailure.
    """

    def __init__(self):
        self._actions: List[UndoAction] = []

    def register(self, entity: str, entity_id: Any, undo: Callable[[], None]) -> None:
        self._actions.append(UndoAction(entity=entity, entity_id=entity_id, undo=undo))

    @property
    def pending(self) -> int:
        return len(self._actions)

    def clear(self) -> None:
        """Forget registered undos once the whole write sequence has succeeded"""
        self._actions.clear()

    def compensate(self) -> None:
        failures = []
        while self._actions:
            action = self._actions.pop()
            try:
                action.undo()
            except Exception as e:
                rollback_counter.labels(outcome="failed").inc()
                log_rollback(action.entity, action.entity_id, succeeded=False, error=e)
                failures.append((action, e))
            else:
                rollback_counter.labels(outcome="succeeded").inc()
                log_rollback(action.entity, action.entity_id, succeeded=True)

        if failures:
            action, error = failures[0]
            raise IntegrityFailure(action.entity, action.entity_id, cause=error) from error
