from datetime import datetime, timezone

import pytest

from tableside.services.notifications import get_receipt_notifier

from conftest import PASSWORD


def _place_order(client, tenant, phone="919876543210", email="asha@example.com"):
    response = client.post(
        f"/menu/{tenant.token}/orders",
        json={
            "customer": {"name": "Asha", "phone": phone, "email": email},
            "items": [{"id": tenant.burger_id, "quantity": 2}, {"id": tenant.cola_id}],
        },
    )
    assert response.status_code == 200
    return response.json()["order_id"]


# =============================================================================
# AUTH
# =============================================================================

def test_admin_routes_need_a_session(client, tenant):
    response = client.get("/admin/orders")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_wrong_password_is_rejected(client, tenant):
    response = client.post("/admin/login", json={"email": tenant.email, "password": "nope"})
    assert response.status_code == 401


def test_form_login_redirects(client, tenant):
    response = client.post(
        "/admin/login",
        data={"email": tenant.email, "password": PASSWORD, "next": "/admin/tables"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/admin/tables"
    assert client.get("/admin/me").json()["email"] == tenant.email


@pytest.mark.parametrize("next_path", [
    "//evil.example/phish",
    "/\\evil.example/phish",
    "/\t/evil.example",
    "https://evil.example/",
    "admin/tables",
])
def test_form_login_never_redirects_off_site(client, tenant, next_path):
    response = client.post(
        "/admin/login",
        data={"email": tenant.email, "password": PASSWORD, "next": next_path},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/admin/dashboard"


def test_print_page_redirects_to_login(client, tenant):
    response = client.get("/admin/orders/abc/print", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"].startswith("/admin/login")


def test_logout(admin_client):
    admin_client.post("/admin/logout")
    assert admin_client.get("/admin/orders").status_code == 401


# =============================================================================
# KITCHEN
# =============================================================================

def test_board_lanes_and_status_flow(admin_client, tenant):
    order_id = _place_order(admin_client, tenant)

    lanes = admin_client.get("/admin/orders/board").json()["lanes"]
    assert [o["id"] for o in lanes["New"]] == [order_id]
    assert lanes["New"][0]["actions"] == ["Preparing", "Rejected"]

    response = admin_client.patch(f"/admin/orders/{order_id}/status", json={"status": "Preparing"})
    assert response.json() == {"success": True, "id": order_id, "status": "Preparing", "version": 2}

    lanes = admin_client.get("/admin/orders/board").json()["lanes"]
    assert lanes["New"] == []
    assert [o["id"] for o in lanes["Preparing"]] == [order_id]

    response = admin_client.patch(f"/admin/orders/{order_id}/status", json={"status": "Cooked"})
    assert response.status_code == 400


def test_mark_paid_returns_receipt_link(admin_client, tenant):
    order_id = _place_order(admin_client, tenant)

    data = admin_client.post(f"/admin/orders/{order_id}/paid").json()

    assert data["success"] is True
    assert data["order"]["status"] == "Paid"
    assert data["order"]["total_amount"] == 120
    assert data["whatsapp_url"].startswith("https://wa.me/919876543210?text=")
    assert "BILL RECEIPT" in data["receipt_text"]

    lanes = admin_client.get("/admin/orders/board").json()["lanes"]
    assert all(not orders for orders in lanes.values())


def test_orders_of_other_tenant_are_invisible(admin_client, tenant, other_tenant):
    order_id = _place_order(admin_client, other_tenant)

    assert admin_client.get("/admin/orders").json() == []
    assert admin_client.get(f"/admin/orders/{order_id}").status_code == 404
    assert admin_client.patch(f"/admin/orders/{order_id}/status", json={"status": "Rejected"}).status_code == 404


def test_receipt_email_goes_through_notifier(admin_client, tenant):
    order_id = _place_order(admin_client, tenant)

    response = admin_client.post(f"/admin/orders/{order_id}/receipt/email")
    assert response.status_code == 200
    assert response.json()["provider"] == "mock"

    sent = get_receipt_notifier().sent
    assert sent[-1].to_email == "asha@example.com"
    assert sent[-1].amount == 120


def test_receipt_email_needs_an_address(admin_client, tenant):
    order_id = _place_order(admin_client, tenant, email=None)
    response = admin_client.post(f"/admin/orders/{order_id}/receipt/email")
    assert response.status_code == 400


def test_printable_receipt(admin_client, tenant):
    order_id = _place_order(admin_client, tenant)

    response = admin_client.get(f"/admin/orders/{order_id}/print")
    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "window.print()" in response.text
    assert "₹120.00" in response.text


# =============================================================================
# BACK OFFICE
# =============================================================================

def test_table_crud(admin_client):
    created = admin_client.post("/admin/tables", json={"name": "Patio 1"}).json()
    assert created["qr_code_url"] == f"http://testserver/menu/{created['token']}"

    renamed = admin_client.patch(f"/admin/tables/{created['id']}", json={"name": "Patio A"}).json()
    assert renamed["name"] == "Patio A"

    assert admin_client.post("/admin/tables", json={"name": " "}).status_code == 400
    assert admin_client.delete(f"/admin/tables/{created['id']}").json() == {"success": True}


def test_table_with_orders_is_kept(client, admin_client, tenant):
    _place_order(client, tenant)

    response = admin_client.delete(f"/admin/tables/{tenant.table_id}")
    assert response.status_code == 400
    assert response.json() == {"error": "Table has orders and cannot be deleted"}


def test_category_delete_cascades_over_http(admin_client, tenant):
    response = admin_client.delete(f"/admin/categories/{tenant.mains_id}")
    assert response.json() == {"success": True, "deleted_items": 2}

    names = [i["name"] for i in admin_client.get("/admin/menu-items").json()]
    assert names == ["Cola"]


def test_menu_item_multipart_create(admin_client, tenant):
    response = admin_client.post(
        "/admin/menu-items",
        data={"name": "Lassi", "price": "90", "category_id": tenant.drinks_id, "tags": "cold"},
        files={"image": ("lassi.jpg", b"jpeg-bytes", "image/jpeg")},
    )
    assert response.status_code == 201
    item = response.json()
    assert item["image_url"].startswith("http://testserver/uploads/menu-images/")

    response = admin_client.post("/admin/menu-items", data={"name": "Lassi", "category_id": tenant.drinks_id})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}


def test_posters_and_settings(admin_client, tenant, other_tenant):
    response = admin_client.post(
        "/admin/posters",
        json={"title": "Burger Week", "image_url": "http://img/p.png", "menu_item_id": tenant.burger_id},
    )
    poster = response.json()
    assert poster["menu_item_name"] == "Burger"

    response = admin_client.post(
        "/admin/posters",
        json={"title": "Stolen", "image_url": "http://img/x.png", "menu_item_id": other_tenant.burger_id},
    )
    assert response.status_code == 404

    admin_client.patch(f"/admin/posters/{poster['id']}/active", json={"is_active": False})
    assert admin_client.get(f"/menu/{tenant.token}").json()["posters"] == []

    settings = admin_client.put("/admin/settings/name", json={"restaurant_name": "Spice Route"}).json()
    assert settings == {"restaurant_name": "Spice Route", "is_ai_enabled": True}
    settings = admin_client.put("/admin/settings/ai", json={"enabled": False}).json()
    assert settings["is_ai_enabled"] is False


def test_poster_upload(admin_client):
    response = admin_client.post("/admin/posters/upload", files={"file": ("promo.PNG", b"png", "image/png")})
    assert response.status_code == 200
    assert response.json()["url"].endswith(".PNG")


# =============================================================================
# ANALYTICS
# =============================================================================

def test_customer_export_csv(admin_client, tenant):
    order_id = _place_order(admin_client, tenant)
    admin_client.post(f"/admin/orders/{order_id}/paid")
    rejected = _place_order(admin_client, tenant)
    admin_client.patch(f"/admin/orders/{rejected}/status", json={"status": "Rejected"})

    response = admin_client.get("/admin/customers/export.csv")
    assert response.status_code == 200
    assert f'filename="customers-{datetime.now(timezone.utc).date().isoformat()}.csv"' in response.headers["content-disposition"]

    lines = response.text.strip().splitlines()
    assert lines[0] == "Name,Phone,Total Orders,Total Spent,Last Visit"
    assert lines[1].startswith("Asha,919876543210,1,120.00,")


def test_customer_analytics_counts_are_integers(admin_client, tenant):
    order_id = _place_order(admin_client, tenant)
    admin_client.post(f"/admin/orders/{order_id}/paid")

    data = admin_client.get("/admin/customers").json()
    assert data["orders"] == {"daily": 1, "weekly": 1, "monthly": 1, "total": 1}
    assert all(type(count) is int for count in data["orders"].values())
    assert data["revenue"]["total"] == 120
    assert data["customers"][0]["total_orders"] == 1


def test_dashboard(admin_client, tenant):
    paid = _place_order(admin_client, tenant)
    admin_client.post(f"/admin/orders/{paid}/paid")
    _place_order(admin_client, tenant)

    data = admin_client.get("/admin/dashboard").json()
    assert data["todays_revenue"] == 120
    assert data["active_orders"] == 1
    assert data["tables"] == 1


def test_health(client):
    data = client.get("/health").json()
    assert data["status"] == "operational"
    assert data["change_feed"] == "healthy"
