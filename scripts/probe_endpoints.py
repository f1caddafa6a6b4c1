#!/usr/bin/env python3
"""Probe the configured RPC candidates and show the current fee offer.

Usage:
    python scripts/probe_endpoints.py
    python scripts/probe_endpoints.py --rpc https://eth.llamarpc.com --timeout 3
"""

import argparse
import asyncio
import sys
import time

from treasury_relay.config import get_settings
from treasury_relay.errors import RpcError
from treasury_relay.fees import FeePolicy, compute_fee_offer, fetch_network_fee_data
from treasury_relay.rpc.client import JsonRpcClient

# Colors for output
GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"
CHECK = "✓"
CROSS = "✗"


def print_status(name: str, success: bool, message: str = ""):
    """Print status with color."""
    mark = f"{GREEN}{CHECK}{RESET}" if success else f"{RED}{CROSS}{RESET}"
    print(f"  {mark} {name}" + (f" - {message}" if message else ""))


async def probe(url: str, chain_id: int, timeout: float) -> bool:
    client = JsonRpcClient(url, chain_id, timeout=timeout)
    started = time.monotonic()
    try:
        block = await asyncio.wait_for(client.block_number(), timeout=timeout)
    except asyncio.TimeoutError:
        print_status(url, False, "timeout")
        return False
    except RpcError as e:
        print_status(url, False, str(e)[:60])
        return False
    finally:
        await client.aclose()

    elapsed_ms = (time.monotonic() - started) * 1000
    print_status(url, True, f"block {block} in {elapsed_ms:.0f} ms")
    return True


async def show_fee_offer(url: str, chain_id: int, timeout: float) -> None:
    settings = get_settings()
    client = JsonRpcClient(url, chain_id, timeout=timeout)
    try:
        data = await fetch_network_fee_data(client)
    finally:
        await client.aclose()

    offer = compute_fee_offer(data, FeePolicy.from_settings(settings))
    print(f"\n⛽ Fee offer from {url}:")
    print(f"  network max fee:      {data.max_fee_per_gas} wei")
    print(f"  network priority fee: {data.max_priority_fee_per_gas} wei")
    print(f"  offer max fee:        {offer.max_fee_per_gas / 10**9:.3f} gwei")
    print(f"  offer priority fee:   {offer.max_priority_fee_per_gas / 10**9:.3f} gwei")


async def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--rpc", action="append", help="RPC URL to probe (repeatable)")
    parser.add_argument("--timeout", type=float, default=settings.rpc_probe_timeout)
    args = parser.parse_args()

    urls = args.rpc or settings.rpc_url_list

    print("\n🔗 Probing RPC endpoints...")
    live = []
    for url in urls:
        if await probe(url, settings.chain_id, args.timeout):
            live.append(url)

    if not live:
        print("\nNo RPC endpoint reachable")
        return 1

    await show_fee_offer(live[0], settings.chain_id, args.timeout)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
