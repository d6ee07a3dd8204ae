"""
DragEngine: one entry point for proposing transfers.

Wires the router, the operation set, result reporting and undo history around
a pair of stores. The engine never picks what to move; it only adjudicates and
applies what the caller proposes.
"""

from __future__ import annotations

import logging
from typing import Optional

from rankgrid_core.config import EngineConfig
from rankgrid_core.validation import ValidationAuthority, ValidationResult

from .context import DragContext, parse_drag_event
from .history import OperationHistory
from .notifications import ResultReporter
from .operations import DragOperation, build_operations
from .results import DragOperationResult, OperationType
from .router import OperationRouter, RoutePlan
from .stores import OperationStores

logger = logging.getLogger(__name__)


class DragEngine:
    def __init__(
        self,
        stores: OperationStores,
        authority: Optional[ValidationAuthority] = None,
        config: Optional[EngineConfig] = None,
        reporter: Optional[ResultReporter] = None,
        history: Optional[OperationHistory] = None,
    ):
        self.config = config or EngineConfig()
        self.stores = stores
        self.check_invariants = self.config.engine.check_invariants
        self.authority = authority or ValidationAuthority(self.config.rules.to_rules())
        self.router = OperationRouter()
        self.operations = build_operations(self.authority)
        self.reporter = reporter or ResultReporter()
        if history is None:
            history = OperationHistory(self.config.engine.history_limit)
        self.history = history

    def operation(self, op_type: OperationType) -> DragOperation:
        return self.operations[op_type]

    def plan(self, context: DragContext) -> RoutePlan:
        """Route ``context`` without validating or applying it."""
        return self.router.route(context, self.stores.grid)

    def validate(self, context: DragContext) -> ValidationResult:
        """Dry run: would ``handle(context)`` be accepted right now?"""
        plan = self.plan(context)
        return self.operations[plan.operation].validate(context, self.stores)

    def handle(self, context: DragContext) -> DragOperationResult:
        """
        Route, validate and execute a proposed transfer.

        Successful results are recorded for undo. Rejections leave the stores
        untouched.

        Raises:
            UnroutableDragError: No operation exists for the source/target kinds
            TransactionError: A partial execution could not be undone
        """
        plan = self.plan(context)
        logger.debug(
            "routed %s -> %s as %s",
            context.source.kind.value,
            context.target.kind.value,
            "+".join(step.value for step in plan.steps),
        )
        return self.apply(plan.operation, context)

    def apply(self, op_type: OperationType, context: DragContext) -> DragOperationResult:
        """Run a specific operation without routing (e.g. an explicit "move" command)."""
        with self.stores.auditing(self.check_invariants):
            result = self.operations[op_type].execute(context, self.stores)
        self.reporter.report(result, context)
        if result.success:
            self.history.record(context, result)
        return result

    def handle_drop(
        self, active_id: str, over_id: Optional[str], group_id: Optional[str] = None
    ) -> Optional[DragOperationResult]:
        """
        Handle a drop given raw element ids (``grid-N``, an item id, or ``backlog``).

        Returns:
            The operation result, or None when the drop had no usable target or
            changes nothing (a backlog item dropped back on the backlog)
        """
        context = parse_drag_event(active_id, over_id, self.stores.grid, group_id=group_id)
        if context is None:
            logger.debug("ignored drop of %s on %r", active_id, over_id)
            return None
        return self.handle(context)

    def rollback(self, context: DragContext, result: DragOperationResult) -> DragOperationResult:
        """Apply the inverse of a successful ``result``."""
        with self.stores.auditing(self.check_invariants):
            inverse = self.operations[result.operation_type].rollback(context, result, self.stores)
        self.reporter.report(inverse, context)
        return inverse

    def undo(self) -> Optional[DragOperationResult]:
        """
        Roll back the most recent recorded operation.

        Returns:
            The inverse result, or None when there is nothing to undo. A
            rejected inverse (the grid changed underneath) stays on the stack.
        """
        entry = self.history.peek_undo()
        if entry is None:
            return None
        inverse = self.rollback(entry.context, entry.result)
        if inverse.success:
            self.history.mark_undone()
        return inverse

    def redo(self) -> Optional[DragOperationResult]:
        entry = self.history.peek_redo()
        if entry is None:
            return None
        with self.stores.auditing(self.check_invariants):
            result = self.operations[entry.result.operation_type].execute(entry.context, self.stores)
        self.reporter.report(result, entry.context)
        if result.success:
            self.history.mark_redone(result)
        return result


__all__ = ["DragEngine"]
