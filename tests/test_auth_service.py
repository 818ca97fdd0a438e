from qrdine_shared.services.audit_service import add_log, list_logs
from qrdine_shared.services.auth_service import authenticate, login, logout


def test_wrong_password_fails_without_log_row(app):
    before = len(list_logs())

    result = authenticate("admin", "wrongpass")

    assert result.success is False
    assert result.staff is None
    assert result.error_message == "Sai tên đăng nhập hoặc mật khẩu"
    assert len(list_logs()) == before


def test_unknown_user_and_blank_fields_fail(app):
    assert login("nobody", "correctpass") is None
    assert login("", "") is None


def test_username_is_case_sensitive(app):
    assert login("ADMIN", "correctpass") is None


def test_correct_password_returns_staff_and_appends_one_login_row(app):
    before = len(list_logs())

    staff = login("admin", "correctpass")

    assert staff["username"] == "admin"
    assert staff["role"] == "ADMIN"
    assert "password" not in staff
    assert "passwordHash" not in staff
    logs = list_logs()
    assert len(logs) == before + 1
    assert logs[0]["action"] == "Đăng nhập"
    assert logs[0]["user"] == staff["name"]


def test_logout_appends_a_row_for_known_user(app):
    staff = login("admin", "correctpass")

    assert logout(staff) is True
    assert list_logs()[0]["action"] == "Đăng xuất"
    assert logout(None) is False


def test_add_log_defaults_to_system_user(app):
    assert add_log("Cài đặt", "Đổi giờ mở cửa") is True

    latest = list_logs(limit=1)[0]
    assert latest["user"] == "Hệ thống"
    assert latest["details"] == "Đổi giờ mở cửa"
