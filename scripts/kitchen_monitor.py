"""
Kitchen Monitor Script

Terminal kitchen board: signs in, loads the current orders, follows the
live order stream and reprints the lanes on every change. New orders ring
the terminal bell.
Run from project root: python scripts/kitchen_monitor.py owner@example.com
"""

import argparse
import asyncio
import getpass
import json
import sys
from datetime import datetime
from typing import Any, AsyncIterator, Optional

import httpx

from tableside.board import KitchenBoard

API_BASE_URL = "http://localhost:8001"


async def sse_events(response: httpx.Response) -> AsyncIterator[dict[str, Any]]:
    """Yield the decoded ``data`` payload of each SSE event; comments are skipped."""
    data_lines: list[str] = []
    async for line in response.aiter_lines():
        if line == "":
            if data_lines:
                yield json.loads("\n".join(data_lines))
                data_lines = []
            continue
        if line.startswith(":"):
            continue
        if line.startswith("data:"):
            data_lines.append(line[5:].lstrip())


def render(board: KitchenBoard) -> None:
    print("\033[2J\033[H", end="")
    print("=" * 70)
    print(f"🍳 KITCHEN BOARD  ({datetime.now().strftime('%H:%M:%S')})")
    print("=" * 70)
    for lane, orders in board.lanes().items():
        print(f"\n{lane.upper()} ({len(orders)})")
        for order in orders:
            items = ", ".join(f"{i['quantity']}x {i['name']}" for i in order.get("items", []))
            actions = " / ".join(KitchenBoard.actions_for(order))
            print(f"  #{order['id'][:8]}  {order.get('table_name') or '-':<6} "
                  f"{order['customer_name']:<18} {items}")
            if actions:
                print(f"            next: {actions}")
    print()


async def monitor(base_url: str, email: str, password: str, sound: bool) -> int:
    async with httpx.AsyncClient(base_url=base_url, timeout=httpx.Timeout(30.0, read=None)) as client:
        response = await client.post("/admin/login", json={"email": email, "password": password})
        if response.status_code != 200:
            print(f"❌ Login failed: {response.text[:200]}")
            return 1

        response = await client.get("/admin/orders/board")
        response.raise_for_status()
        snapshot = [order for lane in response.json()["lanes"].values() for order in lane]

        async def fetch_order(order_id: str) -> Optional[dict[str, Any]]:
            r = await client.get(f"/admin/orders/{order_id}")
            return r.json() if r.status_code == 200 else None

        def ring(order: dict[str, Any]) -> None:
            print("\a", end="", flush=True)

        board = KitchenBoard(snapshot, fetch_order, on_new_order=ring, sound_enabled=sound)
        render(board)

        async with client.stream("GET", "/admin/orders/stream") as stream:
            if stream.status_code != 200:
                print(f"❌ Stream refused: {stream.status_code}")
                return 1
            async for event in sse_events(stream):
                await board.apply_event(event)
                render(board)

    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Terminal kitchen board")
    parser.add_argument("email")
    parser.add_argument("--password", help="Prompted for when omitted")
    parser.add_argument("--base-url", default=API_BASE_URL)
    parser.add_argument("--mute", action="store_true", help="No bell on new orders")
    args = parser.parse_args()

    password = args.password or getpass.getpass("Password: ")
    try:
        sys.exit(asyncio.run(monitor(args.base_url, args.email, password, sound=not args.mute)))
    except KeyboardInterrupt:
        sys.exit(0)
