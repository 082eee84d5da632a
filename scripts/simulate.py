"""
Rush Hour Simulation Script

Fires many concurrent customer orders at one table to exercise order
placement, the change feed and the kitchen board under load.
Run from project root: python scripts/simulate.py --token <table token>

Half of the simulated diners post their items directly, the other half
build a cart first and then order it.
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 50

FIRST_NAMES = ["Asha", "Ravi", "Meera", "Kabir", "Ishaan", "Tara", "Dev", "Nina", "Arjun", "Zoya"]
LAST_NAMES = ["Rao", "Shah", "Iyer", "Khan", "Menon", "Das", "Pillai", "Kapoor", "Singh", "Bose"]


def generate_random_customer() -> dict[str, Any]:
    first = random.choice(FIRST_NAMES)
    last = random.choice(LAST_NAMES)
    return {
        "name": f"{first} {last}",
        "phone": random.choice([None, f"91{random.randint(7000000000, 9999999999)}"]),
        "email": random.choice([None, f"{first.lower()}.{last.lower()}@example.com"]),
    }


def generate_random_items(menu: list[dict]) -> list[dict]:
    picks = random.sample(menu, k=min(len(menu), random.randint(1, 4)))
    return [{"id": item["id"], "quantity": random.randint(1, 3)} for item in picks]


# =============================================================================
# ORDER FLOWS
# =============================================================================

async def send_direct_order(
    client: httpx.AsyncClient,
    token: str,
    menu: list[dict],
    order_num: int,
) -> dict[str, Any]:
    """Post the items with the order."""
    payload = {"customer": generate_random_customer(), "items": generate_random_items(menu)}
    start_time = time.time()

    try:
        response = await client.post(f"/menu/{token}/orders", json=payload)
        elapsed = round(time.time() - start_time, 3)
        if response.status_code == 200:
            return {"order_num": order_num, "success": True, "order_id": response.json()["order_id"],
                    "time": elapsed, "mode": "direct"}
        return {"order_num": order_num, "success": False, "error": response.text[:100],
                "time": elapsed, "mode": "direct"}
    except httpx.HTTPError as e:
        return {"order_num": order_num, "success": False, "error": str(e)[:100],
                "time": round(time.time() - start_time, 3), "mode": "direct"}


async def send_cart_order(
    base_url: str,
    token: str,
    menu: list[dict],
    order_num: int,
) -> dict[str, Any]:
    """Fill a cart item by item, then order it. Each diner has its own cart cookie."""
    start_time = time.time()

    try:
        async with httpx.AsyncClient(base_url=base_url, timeout=30.0) as client:
            for line in generate_random_items(menu):
                for _ in range(line["quantity"]):
                    response = await client.post(f"/menu/{token}/cart/items", json={"item_id": line["id"]})
                    response.raise_for_status()

            response = await client.post(
                f"/menu/{token}/orders",
                json={"customer": generate_random_customer()},
            )
        elapsed = round(time.time() - start_time, 3)
        if response.status_code == 200:
            return {"order_num": order_num, "success": True, "order_id": response.json()["order_id"],
                    "time": elapsed, "mode": "cart"}
        return {"order_num": order_num, "success": False, "error": response.text[:100],
                "time": elapsed, "mode": "cart"}
    except httpx.HTTPError as e:
        return {"order_num": order_num, "success": False, "error": str(e)[:100],
                "time": round(time.time() - start_time, 3), "mode": "cart"}


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(base_url: str, token: str, num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    print("=" * 70)
    print("🔥 RUSH HOUR SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {base_url}/menu/{token}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient(base_url=base_url, timeout=30.0) as client:
        response = await client.get(f"/menu/{token}")
        if response.status_code != 200:
            print(f"❌ Could not load menu: {response.text[:200]}")
            return {"total": num_orders, "successful": 0, "failed": num_orders}

        data = response.json()
        menu = data["items"]
        if not menu:
            print("❌ The menu has no available items")
            return {"total": num_orders, "successful": 0, "failed": num_orders}

        print(f"\n🍽️  {data['settings']['restaurant_name']} / table {data['table']['name']}: "
              f"{len(menu)} items available")
        print("\n🚀 Firing orders...\n")

        start_time = time.time()
        tasks = [
            send_direct_order(client, token, menu, i + 1) if i % 2 == 0
            else send_cart_order(base_url, token, menu, i + 1)
            for i in range(num_orders)
        ]
        results = await asyncio.gather(*tasks)
        total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")

    for mode in ("direct", "cart"):
        subset = [r for r in results if r["mode"] == mode]
        if subset:
            print(f"   {mode}: {len([r for r in subset if r['success']])}/{len(subset)} successful")

    if successful:
        times = [r["time"] for r in successful]
        print("\n📈 Performance Metrics:")
        print(f"   Average Response: {round(sum(times) / len(times), 3)}s")
        print(f"   Fastest: {min(times)}s")
        print(f"   Slowest: {max(times)}s")

    if failed:
        print("\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']} [{f['mode']}]: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("Open the kitchen board (or scripts/kitchen_monitor.py) to watch them arrive.")
    print("=" * 70)

    return {"total": num_orders, "successful": len(successful), "failed": len(failed),
            "total_time": total_time, "results": results}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Rush Hour Simulation Script")
    parser.add_argument("--token", required=True, help="Table access token (from /admin/tables)")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--base-url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    summary = asyncio.run(run_simulation(args.base_url, args.token, args.orders))
    sys.exit(0 if summary["failed"] == 0 else 1)
