import pytest

from qrdine_shared.services.order_service import create_order


def _data(resp):
    body = resp.get_json()
    assert body["status"] == "success", body
    return body["data"]


@pytest.fixture()
def order(app, products, make_line):
    return create_order(
        "2",
        "An",
        [make_line(products["Phở bò tái"], quantity=2, note="ít hành"), make_line(products["Trà đá"], quantity=4)],
        130000,
    )


def test_admin_page_shows_login_then_dashboard(client, admin_client):
    assert "Đăng nhập quản trị" in client.get("/admin").get_data(as_text=True)
    assert "Quản trị viên" in admin_client.get("/admin").get_data(as_text=True)


def test_api_requires_sign_in(client):
    for path in ("/admin/api/dashboard", "/admin/api/orders", "/admin/api/logs", "/admin/api/auth/me"):
        resp = client.get(path)
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Vui lòng đăng nhập"


def test_connection_probe_is_open(client):
    assert _data(client.get("/admin/api/connection")) == {"isConnected": True}


def test_login_failure(client):
    resp = client.post("/admin/api/auth/login", json={"username": "admin", "password": "wrongpass"})

    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Sai tên đăng nhập hoặc mật khẩu"
    assert client.get("/admin/api/auth/me").status_code == 401


def test_login_sets_cookies_and_logout_clears_them(client):
    resp = client.post("/admin/api/auth/login", json={"username": "admin", "password": "correctpass"})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["message"] == "Đăng nhập thành công"
    assert body["data"]["user"]["username"] == "admin"
    cookies = " ".join(resp.headers.getlist("Set-Cookie"))
    assert "qrdine_staff_session=" in cookies
    assert "qrdine_staff=" in cookies
    assert _data(client.get("/admin/api/auth/me"))["user"]["name"] == "Quản trị viên"

    assert client.post("/admin/api/auth/logout").status_code == 200
    assert client.get("/admin/api/auth/me").status_code == 401


def test_login_and_logout_are_logged(admin_client):
    admin_client.post("/admin/api/auth/logout")
    admin_client.post("/admin/api/auth/login", json={"username": "admin", "password": "correctpass"})

    actions = [log["action"] for log in _data(admin_client.get("/admin/api/logs"))]

    assert actions[:3] == ["Đăng nhập", "Đăng xuất", "Đăng nhập"]


def test_dashboard_payload_and_alert(admin_client, order, products, make_line):
    first = _data(admin_client.get("/admin/api/dashboard"))
    assert first["newestOrderId"] == order["id"]
    assert first["pendingCount"] == 1
    assert first["alert"] is None
    assert [a["status"] for a in first["orders"][0]["actions"]] == ["CONFIRMED", "CANCELLED"]

    newer = create_order("5", "Bình", [make_line(products["Trà đá"])])
    second = _data(admin_client.get(f"/admin/api/dashboard?last_order_id={order['id']}"))

    assert second["alert"] == {"orderId": newer["id"], "tableId": "5", "message": "Đơn mới từ Bàn 5!"}


def test_order_status_workflow(admin_client, order):
    resp = admin_client.post(f"/admin/api/orders/{order['id']}/status", json={"status": "CONFIRMED"})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["data"]["status"] == "CONFIRMED"
    assert body["data"]["actions"][0]["status"] == "PREPARING"
    assert body["message"] == f"Đã cập nhật đơn hàng #{order['id'][-4:]} thành Đã xác nhận"

    skipped = admin_client.post(f"/admin/api/orders/{order['id']}/status", json={"status": "COMPLETED"})
    assert skipped.status_code == 409

    unknown = admin_client.post("/admin/api/orders/missing/status", json={"status": "CONFIRMED"})
    assert unknown.status_code == 404

    invalid = admin_client.post(f"/admin/api/orders/{order['id']}/status", json={"status": "SERVED"})
    assert invalid.status_code == 400


def test_order_list_filters(admin_client, order):
    assert [o["id"] for o in _data(admin_client.get("/admin/api/orders?status=PENDING"))] == [order["id"]]
    assert _data(admin_client.get("/admin/api/orders?status=COMPLETED")) == []
    assert admin_client.get("/admin/api/orders?status=BOGUS").status_code == 400
    assert _data(admin_client.get(f"/admin/api/orders/{order['id']}"))["tableId"] == "2"
    assert admin_client.get("/admin/api/orders/missing").status_code == 404


def test_receipts(admin_client, order):
    html = admin_client.get(f"/admin/api/orders/{order['id']}/receipt")
    assert html.status_code == 200
    page = html.get_data(as_text=True)
    assert "PHIẾU TẠM TÍNH" in page
    assert "130.000đ" in page
    assert "window.print()" in page

    text = admin_client.get(f"/admin/api/orders/{order['id']}/receipt.txt")
    assert text.mimetype == "text/plain"
    assert "THÀNH TIỀN:" in text.get_data(as_text=True)

    pdf = admin_client.get(f"/admin/api/orders/{order['id']}/receipt.pdf")
    assert pdf.mimetype == "application/pdf"
    assert pdf.data.startswith(b"%PDF")

    assert admin_client.get("/admin/api/orders/missing/receipt").status_code == 404


def test_product_crud_is_logged_and_published(admin_client):
    created = admin_client.post(
        "/admin/api/products", json={"name": "Bún chả", "price": 45000, "category": "Món chính"}
    )
    assert created.status_code == 201
    product = _data(created)

    updated = _data(
        admin_client.put(
            f"/admin/api/products/{product['id']}",
            json={**product, "price": 48000, "available": False},
        )
    )
    assert updated["price"] == 48000
    assert product["id"] not in [p["id"] for p in _data(admin_client.get("/api/menu"))["products"]]

    assert admin_client.delete(f"/admin/api/products/{product['id']}").status_code == 200
    assert admin_client.delete(f"/admin/api/products/{product['id']}").status_code == 404

    feed = _data(admin_client.get("/api/realtime/events?topic=menu&after_id=0"))
    assert [e["eventType"] for e in feed["events"]] == ["INSERT", "UPDATE", "DELETE"]

    actions = [log["action"] for log in _data(admin_client.get("/admin/api/logs"))]
    assert actions[:3] == ["Xóa món", "Cập nhật món", "Thêm món mới"]


def test_product_validation(admin_client):
    assert admin_client.post("/admin/api/products", json={"name": "", "price": 1}).status_code == 400
    assert admin_client.post("/admin/api/products", json={"name": "X", "price": -1}).status_code == 400


def test_category_crud(admin_client):
    category = _data(admin_client.post("/admin/api/categories", json={"name": "Lẩu"}))
    assert category["order"] == 5

    renamed = _data(admin_client.put(f"/admin/api/categories/{category['id']}", json={"name": "Lẩu nấm"}))
    assert renamed["name"] == "Lẩu nấm"

    assert admin_client.delete(f"/admin/api/categories/{category['id']}").status_code == 200
    assert "Lẩu nấm" not in [c["name"] for c in _data(admin_client.get("/admin/api/categories"))]


def test_tables_and_qr(admin_client, order):
    tables = _data(admin_client.get("/admin/api/tables"))
    assert tables[0]["url"].endswith("/?table=1")
    assert next(t for t in tables if t["id"] == "2")["isOccupied"] is True

    qr = admin_client.get("/admin/api/tables/1/qr")
    assert qr.mimetype == "image/png"
    assert qr.data.startswith(b"\x89PNG")
    assert admin_client.get("/admin/api/tables/404/qr").status_code == 404

    reset = _data(admin_client.post("/admin/api/tables/2/reset"))
    assert reset["isOccupied"] is False

    created = _data(admin_client.post("/admin/api/tables", json={"id": "vip", "name": "Phòng VIP"}))
    assert created == {"id": "vip", "name": "Phòng VIP", "isOccupied": False}
    assert admin_client.patch("/admin/api/tables/vip/status", json={"isOccupied": True}).status_code == 200
    assert admin_client.delete("/admin/api/tables/vip").status_code == 200
    assert admin_client.delete("/admin/api/tables/vip").status_code == 404


def test_deleting_a_table_keeps_its_orders(admin_client, order):
    admin_client.delete("/admin/api/tables/2")

    assert _data(admin_client.get(f"/admin/api/orders/{order['id']}"))["tableId"] == "2"


def test_staff_accounts(admin_client, app):
    missing_password = admin_client.post(
        "/admin/api/staff", json={"username": "thu", "name": "Thu", "role": "STAFF"}
    )
    assert missing_password.status_code == 400

    created = admin_client.post(
        "/admin/api/staff",
        json={"username": "thu", "password": "secret1", "name": "Thu", "role": "STAFF"},
    )
    assert created.status_code == 201
    staff = _data(created)
    assert "password" not in staff

    duplicate = admin_client.post(
        "/admin/api/staff",
        json={"username": "thu", "password": "secret1", "name": "Thu 2", "role": "STAFF"},
    )
    assert duplicate.status_code == 409

    other = app.test_client()
    login = other.post("/admin/api/auth/login", json={"username": "thu", "password": "secret1"})
    assert login.status_code == 200

    assert admin_client.delete(f"/admin/api/staff/{staff['id']}").status_code == 200
    assert admin_client.delete(f"/admin/api/staff/{staff['id']}").status_code == 404


def test_profile_update_rewrites_identity(admin_client):
    updated = _data(admin_client.put("/admin/api/profile", json={"name": "Chủ quán"}))

    assert updated["name"] == "Chủ quán"
    assert _data(admin_client.get("/admin/api/profile"))["name"] == "Chủ quán"


def test_settings(admin_client, client):
    saved = _data(
        admin_client.put(
            "/admin/api/settings",
            json={"restaurantName": "Quán Ngon", "address": "1 Lê Lợi", "phone": "0909", "wifiPass": "x", "taxRate": 8},
        )
    )
    assert saved["restaurantName"] == "Quán Ngon"
    assert _data(admin_client.get("/admin/api/settings"))["taxRate"] == 8
    assert "Quán Ngon" in client.get("/").get_data(as_text=True)

    assert admin_client.put("/admin/api/settings", json={"restaurantName": ""}).status_code == 400


def test_stats_endpoints(admin_client, order):
    stats = _data(admin_client.get("/admin/api/stats"))
    assert stats["totalRevenue"] == 130000
    assert stats["topSelling"][0] == {"name": "Trà đá", "quantity": 4}

    lookup = _data(admin_client.get("/admin/api/stats/lookup?mode=year&value=1999"))
    assert lookup == {"mode": "year", "value": "1999", "revenue": 0, "count": 0}
    assert admin_client.get("/admin/api/stats/lookup?mode=week&value=1").status_code == 400


def test_staff_can_follow_every_topic(admin_client):
    assert admin_client.get("/api/realtime/events?topic=logs").status_code == 200
    assert admin_client.get("/api/realtime/events?topic=orders").status_code == 200


def test_bearer_token_is_accepted(app):
    login = app.test_client().post(
        "/admin/api/auth/login", json={"username": "admin", "password": "correctpass"}
    )
    token = login.get_json()["data"]["access_token"]

    api = app.test_client()
    assert api.get("/admin/api/auth/me").status_code == 401
    me = api.get("/admin/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert _data(me)["user"]["username"] == "admin"


def test_padded_credentials_do_not_sign_in(client):
    for username, password in (("  admin ", "correctpass"), ("admin", " correctpass  "), (" admin", " correctpass")):
        resp = client.post("/admin/api/auth/login", json={"username": username, "password": password})
        assert resp.status_code == 401


def test_staff_password_is_stored_as_typed(admin_client, app):
    created = admin_client.post(
        "/admin/api/staff",
        json={"username": " lan ", "password": " secret1 ", "name": " Lan ", "role": "STAFF"},
    )
    assert created.status_code == 201
    assert (_data(created)["username"], _data(created)["name"]) == ("lan", "Lan")

    other = app.test_client()
    assert other.post("/admin/api/auth/login", json={"username": "lan", "password": "secret1"}).status_code == 401
    assert other.post("/admin/api/auth/login", json={"username": "lan", "password": " secret1 "}).status_code == 200


def _logs(client):
    return _data(client.get("/admin/api/logs"))


def test_each_admin_write_appends_exactly_one_log_row(admin_client):
    def write(method, path, action, payload=None):
        before = len(_logs(admin_client))
        resp = getattr(admin_client, method)(path, json=payload)
        assert resp.status_code in (200, 201), resp.get_json()
        logs = _logs(admin_client)
        assert len(logs) == before + 1
        assert logs[0]["action"] == action
        assert logs[0]["user"] == "Quản trị viên"
        return resp.get_json()["data"]

    product = write("post", "/admin/api/products", "Thêm món mới", {"name": "Bún chả", "price": 45000})
    write("put", f"/admin/api/products/{product['id']}", "Cập nhật món", {**product, "price": 48000})
    write("delete", f"/admin/api/products/{product['id']}", "Xóa món")

    category = write("post", "/admin/api/categories", "Quản lý danh mục", {"name": "Lẩu"})
    write("put", f"/admin/api/categories/{category['id']}", "Quản lý danh mục", {"name": "Lẩu nấm"})
    write("delete", f"/admin/api/categories/{category['id']}", "Quản lý danh mục")

    write("post", "/admin/api/tables", "Quản lý bàn", {"id": "vip", "name": "Phòng VIP"})
    write("put", "/admin/api/tables/vip", "Quản lý bàn", {"name": "Phòng VIP 1"})
    write("patch", "/admin/api/tables/vip/status", "Quản lý bàn", {"isOccupied": True})
    write("post", "/admin/api/tables/vip/reset", "Quản lý bàn")
    write("delete", "/admin/api/tables/vip", "Quản lý bàn")

    staff = write(
        "post",
        "/admin/api/staff",
        "Quản lý nhân viên",
        {"username": "thu", "password": "secret1", "name": "Thu", "role": "STAFF"},
    )
    write("put", f"/admin/api/staff/{staff['id']}", "Quản lý nhân viên", {"username": "thu", "name": "Thu Hà", "role": "STAFF"})
    write("delete", f"/admin/api/staff/{staff['id']}", "Quản lý nhân viên")

    write("put", "/admin/api/settings", "Cài đặt", {"restaurantName": "Quán Ngon"})


def test_rejected_admin_writes_add_no_log_rows(admin_client):
    admin_client.post(
        "/admin/api/staff", json={"username": "thu", "password": "secret1", "name": "Thu", "role": "STAFF"}
    )
    before = len(_logs(admin_client))

    rejected = [
        admin_client.post(
            "/admin/api/staff", json={"username": "thu", "password": "secret1", "name": "Thu 2", "role": "STAFF"}
        ),
        admin_client.delete("/admin/api/staff/missing"),
        admin_client.delete("/admin/api/products/missing"),
        admin_client.delete("/admin/api/categories/missing"),
        admin_client.delete("/admin/api/tables/missing"),
        admin_client.post("/admin/api/products", json={"name": "", "price": 1}),
        admin_client.post("/admin/api/categories", json={"name": ""}),
        admin_client.put("/admin/api/settings", json={"restaurantName": ""}),
    ]

    assert [resp.status_code for resp in rejected] == [409, 404, 404, 404, 404, 400, 400, 400]
    assert len(_logs(admin_client)) == before
