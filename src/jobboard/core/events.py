from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any


class EventBus:
    """Per-user fan-out of change events to any number of listening queues."""

    def __init__(self) -> None:
        self._queues: dict[str, list[asyncio.Queue[dict[str, Any]]]] = defaultdict(list)

    def open(self, user_id: str) -> asyncio.Queue[dict[str, Any]]:
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._queues[user_id].append(queue)
        return queue

    def close(self, user_id: str, queue: asyncio.Queue[dict[str, Any]]) -> None:
        queues = self._queues.get(user_id, [])
        if queue in queues:
            queues.remove(queue)
        if not queues:
            self._queues.pop(user_id, None)

    def listener_count(self, user_id: str) -> int:
        return len(self._queues.get(user_id, []))

    async def publish(self, user_id: str, event: dict[str, Any]) -> None:
        for queue in list(self._queues.get(user_id, [])):
            queue.put_nowait(event)

