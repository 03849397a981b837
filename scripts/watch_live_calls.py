#!/usr/bin/env python3
"""
Terminal viewer for the live calls socket
"""
import argparse
import asyncio
import logging
from datetime import datetime, timezone

from apps.ops.client import LiveCallsSubscriber, get_live_calls_subscriber
from core.config import settings
from core.logging_config import configure_logging


def render(subscriber: LiveCallsSubscriber) -> None:
    badge = "connected" if subscriber.is_connected else "disconnected"
    print(f"\n[{datetime.now().strftime('%H:%M:%S')}] {badge} - {len(subscriber.live_calls)} live call(s)")
    if subscriber.error:
        print(f"  ! {subscriber.error}")
    now = datetime.now(timezone.utc)
    for call in subscriber.live_calls:
        # Pushed durations only move on a real change, so recompute from start time
        elapsed = max(0, int((now - call.start_time).total_seconds()))
        print(f"  {call.id}  {call.agent_name:<30} {call.phone_number:<16} {call.status:<12} {elapsed // 60:02d}:{elapsed % 60:02d}")


async def watch(url: str, refresh_every: float) -> None:
    subscriber = get_live_calls_subscriber(url)
    subscriber.add_listener(render)
    task = subscriber.start()
    try:
        if refresh_every <= 0:
            await task
            return
        while not task.done():
            await asyncio.sleep(refresh_every)
            if subscriber.is_connected:
                subscriber.refresh()
    finally:
        await subscriber.stop()


def main() -> None:
    parser = argparse.ArgumentParser(description="Watch live calls pushed by the console server")
    parser.add_argument("--url", default=settings.LIVE_CALLS_WS_URL, help="Live calls websocket URL")
    parser.add_argument("--refresh-every", type=float, default=0, help="Request a manual refresh every N seconds")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    configure_logging("DEBUG" if args.verbose else "WARNING")
    logging.getLogger("websockets").setLevel(logging.WARNING)
    try:
        asyncio.run(watch(args.url, args.refresh_every))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
