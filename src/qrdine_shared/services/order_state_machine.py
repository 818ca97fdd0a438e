"""
Order State Machine.

Keeps the legal status moves in one place so both the admin "actions offered"
list and the write path ask the same question. Anything not listed in
``ORDER_TRANSITIONS`` is rejected.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.orm import Session

from qrdine_shared.constants import ORDER_TRANSITIONS, OrderStatus
from qrdine_shared.models import Order
from qrdine_shared.services.table_service import set_occupied


class OrderStateError(Exception):
    """Error raised when a state transition is invalid."""

    def __init__(
        self,
        message: str,
        current_status: OrderStatus | None,
        target_status: OrderStatus | None,
    ):
        super().__init__(message)
        self.current_status = current_status
        self.target_status = target_status


@dataclass
class TransitionContext:
    """Context for one status change."""

    order: Order
    target: OrderStatus
    session: Session
    actor_name: str


def _coerce(status: OrderStatus | str) -> OrderStatus:
    if isinstance(status, OrderStatus):
        return status
    try:
        return OrderStatus(status)
    except ValueError as exc:
        raise OrderStateError(f"Trạng thái không hợp lệ: {status}", None, None) from exc


def allowed_transitions(status: OrderStatus | str) -> list[OrderStatus]:
    """Statuses reachable from ``status`` in one step, in workflow order."""
    current = _coerce(status)
    return [target for (source, target) in ORDER_TRANSITIONS if source == current]


def available_actions(status: OrderStatus | str) -> list[dict[str, str]]:
    """Buttons the dashboard offers for an order in ``status``."""
    current = _coerce(status)
    return [
        {"status": target.value, **policy}
        for (source, target), policy in ORDER_TRANSITIONS.items()
        if source == current
    ]


class OrderStateMachine:
    """
    State machine for order status transitions.

    Responsibilities:
    - Validate that a move is listed (fails closed otherwise)
    - Apply side effects of a move in the caller's transaction
    """

    def __init__(self):
        self._transition_handlers: dict[tuple[OrderStatus, OrderStatus], Callable[[TransitionContext], None]] = {}
        self._register_handlers()

    def _register_handlers(self) -> None:
        self._transition_handlers[(OrderStatus.PREPARING, OrderStatus.COMPLETED)] = (
            self._handle_complete
        )

    def can_transition(self, current_status: OrderStatus | str, target: OrderStatus | str) -> bool:
        try:
            return (_coerce(current_status), _coerce(target)) in ORDER_TRANSITIONS
        except OrderStateError:
            return False

    def validate_transition(self, context: TransitionContext) -> None:
        current_status = _coerce(context.order.status)
        if (current_status, context.target) not in ORDER_TRANSITIONS:
            raise OrderStateError(
                f"Không thể chuyển đơn từ {current_status.value} sang {context.target.value}",
                current_status,
                context.target,
            )

    def apply_transition(self, context: TransitionContext) -> bool:
        """
        Apply the transition described by ``context``.

        Returns False when the order already has the target status (nothing
        to write); raises OrderStateError for moves that are not listed.
        """
        current_status = _coerce(context.order.status)
        if current_status == context.target:
            return False

        self.validate_transition(context)

        handler = self._transition_handlers.get((current_status, context.target))
        context.order.mark_status(context.target.value)
        if handler:
            handler(context)
        return True

    def _handle_complete(self, context: TransitionContext) -> None:
        """A completed order frees its table; a cancelled one does not."""
        set_occupied(context.session, context.order.table_id, False)


order_state_machine = OrderStateMachine()
