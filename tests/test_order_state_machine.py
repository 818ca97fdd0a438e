import pytest

from qrdine_shared.constants import OrderStatus
from qrdine_shared.services.order_state_machine import (
    OrderStateError,
    allowed_transitions,
    available_actions,
    order_state_machine,
)


@pytest.mark.parametrize(
    "status, expected",
    [
        ("PENDING", [OrderStatus.CONFIRMED, OrderStatus.CANCELLED]),
        ("CONFIRMED", [OrderStatus.PREPARING]),
        ("PREPARING", [OrderStatus.COMPLETED]),
        ("COMPLETED", []),
        ("CANCELLED", []),
    ],
)
def test_allowed_transitions(status, expected):
    assert allowed_transitions(status) == expected


def test_available_actions_carry_labels():
    actions = available_actions(OrderStatus.PENDING)

    assert [a["status"] for a in actions] == ["CONFIRMED", "CANCELLED"]
    assert [a["label"] for a in actions] == ["Xác nhận đơn", "Hủy đơn"]
    assert available_actions("COMPLETED") == []


def test_unknown_status_is_rejected():
    with pytest.raises(OrderStateError):
        allowed_transitions("SERVED")


@pytest.mark.parametrize(
    "current, target, allowed",
    [
        ("PENDING", "CONFIRMED", True),
        ("PENDING", "PREPARING", False),
        ("CONFIRMED", "CANCELLED", False),
        ("PREPARING", "COMPLETED", True),
        ("COMPLETED", "PENDING", False),
        ("CANCELLED", "CONFIRMED", False),
        ("PENDING", "NOPE", False),
    ],
)
def test_can_transition(current, target, allowed):
    assert order_state_machine.can_transition(current, target) is allowed
