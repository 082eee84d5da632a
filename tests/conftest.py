"""Test configuration: a throwaway SQLite database and in-process services."""
import asyncio
import os
import socket
import tempfile
import threading
import time
import uuid
from types import SimpleNamespace

_TMP = tempfile.mkdtemp(prefix="tableside-tests-")

# Must be set before anything imports the settings.
os.environ["ENV_MODE"] = "development"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP}/test.db"
os.environ["UPLOAD_DIRECTORY"] = f"{_TMP}/uploads"
os.environ["APP_BASE_URL"] = "http://testserver"
os.environ["SECRET_KEY"] = "x" * 32
os.environ["KEEPALIVE_SECONDS"] = "0.2"

import pytest
import uvicorn
from fastapi.testclient import TestClient

from tableside import models
from tableside.core.config import get_settings
from tableside.core.security import hash_password
from tableside.database import Base, dispose_engine, get_engine, get_session_maker
from tableside.services.carts import reset_cart_store
from tableside.services.notifications import reset_receipt_notifier
from tableside.services.realtime import reset_change_feed
from tableside.services.storage import reset_image_storage

PASSWORD = "correct horse battery"


async def _recreate_schema():
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture(autouse=True)
def fresh_state():
    reset_change_feed()
    reset_cart_store()
    reset_image_storage()
    reset_receipt_notifier()
    asyncio.run(_recreate_schema())
    yield
    asyncio.run(dispose_engine())


def run_db(fn, *args, **kwargs):
    """Run ``fn(session, *args, **kwargs)`` in a fresh session and event loop."""
    async def _go():
        async with get_session_maker()() as session:
            return await fn(session, *args, **kwargs)

    return asyncio.run(_go())


async def _seed_tenant(session, email: str, table_name: str = "T1") -> SimpleNamespace:
    admin = models.AdminUser(email=email, password_hash=hash_password(PASSWORD))
    session.add(admin)
    await session.flush()

    mains = models.Category(user_id=admin.id, name="Mains", sort_order=0)
    drinks = models.Category(user_id=admin.id, name="Drinks", sort_order=1)
    session.add_all([mains, drinks])
    await session.flush()

    burger = models.MenuItem(
        user_id=admin.id, category_id=mains.id, name="Burger", price=50.0,
        description="Beef patty", tags=["grill"], pairings=[],
    )
    fries = models.MenuItem(
        user_id=admin.id, category_id=mains.id, name="Fries", price=30.0,
        description="Crispy potatoes", tags=["side"], pairings=[],
    )
    cola = models.MenuItem(
        user_id=admin.id, category_id=drinks.id, name="Cola", price=20.0,
        description="Ice cold", tags=["cold", "fizzy"], pairings=[],
    )
    session.add_all([burger, fries, cola])
    await session.flush()
    burger.pairings = [fries.id, cola.id]

    token = uuid.uuid4().hex
    table = models.Table(
        user_id=admin.id, name=table_name, token=token,
        qr_code_url=f"http://testserver/menu/{token}",
    )
    session.add(table)
    await session.commit()

    return SimpleNamespace(
        admin_id=admin.id,
        email=email,
        password=PASSWORD,
        mains_id=mains.id,
        drinks_id=drinks.id,
        burger_id=burger.id,
        fries_id=fries.id,
        cola_id=cola.id,
        table_id=table.id,
        token=token,
    )


@pytest.fixture
def tenant():
    return run_db(_seed_tenant, "owner@example.com")


@pytest.fixture
def other_tenant():
    return run_db(_seed_tenant, "rival@example.com", "R1")


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def client():
    from tableside.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_client(client, tenant):
    response = client.post("/admin/login", json={"email": tenant.email, "password": tenant.password})
    assert response.status_code == 200
    return client


def _free_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def live_server():
    """The app on a real uvicorn server in a thread, for streaming responses."""
    from tableside.main import app

    port = _free_port()
    server = uvicorn.Server(uvicorn.Config(
        app, host="127.0.0.1", port=port, log_level="warning", timeout_graceful_shutdown=2,
    ))
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    deadline = time.monotonic() + 10
    while not server.started:
        if not thread.is_alive() or time.monotonic() > deadline:
            raise RuntimeError("uvicorn did not start")
        time.sleep(0.05)

    yield f"http://127.0.0.1:{port}"

    server.should_exit = True
    thread.join(timeout=10)
