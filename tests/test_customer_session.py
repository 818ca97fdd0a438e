from qrdine_clients.utils.customer_session import (
    TableSession,
    load_customer_name,
    load_table_session,
)
from qrdine_shared.datetime_utils import now_ms
from qrdine_shared.jwt_service import create_customer_name_token, create_table_session_token

HOUR_MS = 3600 * 1000


def _state(timestamp, **overrides):
    state = TableSession(table_id="1", name="An", joined=True, timestamp=timestamp).to_state()
    state.update(overrides)
    return state


def test_is_expired_only_after_the_full_window():
    now = now_ms()
    session = TableSession(table_id="1", timestamp=now - 24 * HOUR_MS)

    assert session.is_expired(24, now=now) is False
    assert session.is_expired(24, now=now + 1) is True


def test_state_round_trip_keeps_cart_and_order_markers():
    session = TableSession(
        table_id="7",
        name="Bình",
        joined=True,
        cart=[{"id": "p1", "name": "Phở", "price": 1, "category": "Món chính", "quantity": 2, "note": "ít hành"}],
        placed_order_id="o1",
        dismissed_order_id="o0",
        timestamp=123,
    )

    state = session.to_state()
    restored = TableSession.from_state("7", state)

    assert state["cart"] == [{"id": "p1", "quantity": 2, "note": "ít hành"}]
    assert restored.cart == [{"id": "p1", "quantity": 2, "note": "ít hành"}]
    assert (restored.name, restored.placed_order_id, restored.dismissed_order_id) == ("Bình", "o1", "o0")
    assert restored.timestamp == 123


def test_empty_note_is_not_written_to_the_cookie():
    session = TableSession(table_id="1", cart=[{"id": "p1", "name": "Phở", "price": 1, "quantity": 1, "note": ""}])

    assert session.to_state()["cart"] == [{"id": "p1", "quantity": 1}]


def test_fresh_cookie_is_loaded(app):
    token = create_table_session_token("1", _state(now_ms() - HOUR_MS), 24)

    with app.test_request_context("/", headers={"Cookie": f"qrdine_table_1={token}"}):
        session, expired = load_table_session("1")

    assert expired is False
    assert session.name == "An"
    assert session.joined is True


def test_session_older_than_a_day_is_discarded(app):
    token = create_table_session_token("1", _state(now_ms() - 25 * HOUR_MS), 24)

    with app.test_request_context("/", headers={"Cookie": f"qrdine_table_1={token}"}):
        session, expired = load_table_session("1")

    assert session is None
    assert expired is True


def test_cookie_for_another_table_is_rejected(app):
    token = create_table_session_token("2", _state(now_ms()), 24)

    with app.test_request_context("/", headers={"Cookie": f"qrdine_table_1={token}"}):
        session, expired = load_table_session("1")

    assert session is None
    assert expired is True


def test_tampered_cookie_is_rejected(app):
    with app.test_request_context("/", headers={"Cookie": "qrdine_table_1=not-a-token"}):
        session, expired = load_table_session("1")

    assert session is None
    assert expired is True


def test_missing_cookie_is_not_an_expiry(app):
    with app.test_request_context("/"):
        assert load_table_session("1") == (None, False)
        assert load_customer_name() is None


def test_customer_name_expires_after_thirty_days(app):
    fresh = create_customer_name_token("An", now_ms() - 29 * 24 * HOUR_MS, 30)
    stale = create_customer_name_token("An", now_ms() - 31 * 24 * HOUR_MS, 30)

    with app.test_request_context("/", headers={"Cookie": f"qrdine_customer_name={fresh}"}):
        assert load_customer_name() == "An"
    with app.test_request_context("/", headers={"Cookie": f"qrdine_customer_name={stale}"}):
        assert load_customer_name() is None
