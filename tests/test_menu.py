import pytest
from sqlalchemy import func, select

from tableside.cart import Cart
from tableside.core.errors import NotFound, ValidationFailed
from tableside.models import Category, MenuItem
from tableside.services import menu
from tableside.services.storage import LocalImageStorage

from conftest import run_db


@pytest.fixture
def storage(tmp_path):
    return LocalImageStorage(str(tmp_path), "http://testserver")


def _items(tenant):
    return run_db(menu.list_items, tenant.admin_id)


def test_filter_by_availability_category_and_search(tenant):
    items = _items(tenant)

    assert {i.name for i in menu.filter_items(items)} == {"Burger", "Fries", "Cola"}
    assert {i.name for i in menu.filter_items(items, "all")} == {"Burger", "Fries", "Cola"}
    assert [i.name for i in menu.filter_items(items, tenant.drinks_id)] == ["Cola"]
    assert [i.name for i in menu.filter_items(items, None, "CRISPY")] == ["Fries"]
    assert menu.filter_items(items, tenant.drinks_id, "burger") == []


def test_toggling_availability_hides_but_keeps_item(tenant):
    item = run_db(menu.toggle_availability, tenant.admin_id, tenant.fries_id)
    assert item.is_available is False

    items = _items(tenant)
    assert "Fries" not in {i.name for i in menu.filter_items(items)}
    assert "Fries" in {i.name for i in items}

    run_db(menu.toggle_availability, tenant.admin_id, tenant.fries_id)
    assert "Fries" in {i.name for i in menu.filter_items(_items(tenant))}


def test_assistant_matches_tags_in_menu_order(tenant):
    items = _items(tenant)

    assert [i.name for i in menu.assistant_search(items, "fizzy")] == ["Cola"]
    assert [i.name for i in menu.assistant_search(items, "r")] == ["Burger", "Fries"]
    assert menu.assistant_search(items, "   ") == []


def test_pairings_skip_items_already_in_cart(tenant):
    items = {i.id: i for i in _items(tenant)}
    burger = items[tenant.burger_id]

    cart = Cart()
    cart.add(tenant.cola_id, "Cola", 20.0)

    suggestions = menu.pairing_suggestions(burger, list(items.values()), cart)
    assert [s.name for s in suggestions] == ["Fries"]


def test_deleting_category_removes_its_items(tenant, other_tenant):
    removed = run_db(menu.delete_category, tenant.admin_id, tenant.mains_id)
    assert removed == 2

    async def counts(session):
        items = (await session.execute(
            select(func.count(MenuItem.id)).where(MenuItem.category_id == tenant.mains_id)
        )).scalar()
        category = await session.get(Category, tenant.mains_id)
        other = (await session.execute(
            select(func.count(MenuItem.id)).where(MenuItem.user_id == other_tenant.admin_id)
        )).scalar()
        return items, category, other

    items, category, other = run_db(counts)
    assert items == 0
    assert category is None
    assert other == 3


def test_category_of_other_tenant_cannot_be_deleted(tenant, other_tenant):
    with pytest.raises(NotFound):
        run_db(menu.delete_category, other_tenant.admin_id, tenant.mains_id)


def test_create_item_requires_numeric_price(tenant, storage):
    form = menu.MenuItemForm(name="Soup", price="cheap", category_id=tenant.mains_id)
    with pytest.raises(ValidationFailed, match="Missing required fields"):
        run_db(menu.create_menu_item, tenant.admin_id, form, storage)


def test_uploaded_image_wins_over_pasted_url(tenant, storage, tmp_path):
    form = menu.MenuItemForm(
        name="Soup",
        price="120",
        category_id=tenant.mains_id,
        image_url="http://elsewhere/soup.png",
        tags="hot, veg ,",
        pairings=f"{tenant.cola_id}, not-an-item",
        image=menu.ImageUpload(filename="my soup!.png", content=b"\x89PNG", content_type="image/png"),
    )
    item = run_db(menu.create_menu_item, tenant.admin_id, form, storage)

    assert item.price == 120.0
    assert item.tags == ["hot", "veg"]
    assert item.pairings == [tenant.cola_id]
    assert item.image_url.startswith("http://testserver/uploads/menu-images/")
    assert item.image_url.endswith("-mysoup.png")
    stored = list((tmp_path / "menu-images").iterdir())
    assert len(stored) == 1 and stored[0].read_bytes() == b"\x89PNG"


def test_update_keeps_image_when_none_given(tenant, storage):
    created = run_db(
        menu.create_menu_item, tenant.admin_id,
        menu.MenuItemForm(name="Soup", price="10", category_id=tenant.mains_id, image_url="http://img/a.png"),
        storage,
    )
    updated = run_db(
        menu.update_menu_item, tenant.admin_id, created.id,
        menu.MenuItemForm(name="Tomato Soup", price="12.5"),
        storage,
    )

    assert updated.name == "Tomato Soup"
    assert updated.price == 12.5
    assert updated.image_url == "http://img/a.png"


def test_parse_price():
    assert menu.parse_price("12.345") == 12.35
    assert menu.parse_price("-1") is None
    assert menu.parse_price("nan") is None
    assert menu.parse_price(None) is None
