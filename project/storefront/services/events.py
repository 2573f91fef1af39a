# storefront/services/events.py

import asyncio
import json
from collections import deque
from datetime import datetime, timezone
from typing import AsyncIterator

# 브로드캐스트 가능한 이벤트 이름
EVENT_TYPES = frozenset({
    "ui-section-update",
    "language-pack-update",
    "order-update",
    "inventory-update",
    "heartbeat",
})

CONNECTED_EVENT = "connected"


def format_sse(event: dict) -> str:
    """이벤트 하나를 text/event-stream 프레임으로 만든다."""
    payload = json.dumps(event, ensure_ascii=False, default=str)
    return f"event: {event['type']}\ndata: {payload}\n\n"


class EventBroadcaster:
    """
    접속한 브라우저 탭에 SSE 이벤트를 뿌리는 메모리 기반 브로드캐스터.

    클라이언트마다 asyncio.Queue 하나를 쓴다. 큐에 넣지 못한 클라이언트는
    목록에서 빠진다. 최근 이벤트는 링 버퍼에 남지만 새 접속에 재전송하지 않는다.
    """

    def __init__(self, history_size: int = 100, queue_size: int = 100):
        self.clients: set[asyncio.Queue] = set()
        self.history: deque[dict] = deque(maxlen=history_size)
        self.queue_size = queue_size

    @property
    def client_count(self) -> int:
        return len(self.clients)

    def new_client_queue(self) -> asyncio.Queue:
        return asyncio.Queue(maxsize=self.queue_size)

    def add_client(self, queue: asyncio.Queue) -> None:
        self.clients.add(queue)

    def remove_client(self, queue: asyncio.Queue) -> None:
        self.clients.discard(queue)

    @staticmethod
    def build_event(event_type: str, data) -> dict:
        return {
            "type": event_type,
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def broadcast(self, event_type: str, data=None) -> int:
        """
        모든 클라이언트 큐에 이벤트를 넣고, 전달된 클라이언트 수를 돌려준다.
        """
        if event_type not in EVENT_TYPES:
            raise ValueError(f"알 수 없는 이벤트 타입: {event_type}")

        event = self.build_event(event_type, data)
        self.history.append(event)

        delivered = 0
        for queue in list(self.clients):
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                # 밀린 클라이언트는 끊는다
                self.remove_client(queue)
        return delivered

    def recent_events(self, limit: int = 20) -> list[dict]:
        if limit <= 0:
            return []
        return list(self.history)[-limit:]

    async def stream(self, queue: asyncio.Queue, heartbeat_seconds: float = 30.0) -> AsyncIterator[str]:
        """
        SSE 프레임 제너레이터. 첫 프레임은 접속 확인용 connected 이벤트,
        이후 실시간 이벤트, 유휴 시간이 heartbeat_seconds 를 넘으면 heartbeat.
        """
        self.add_client(queue)
        try:
            yield format_sse(self.build_event(CONNECTED_EVENT, {"clients": self.client_count}))
            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=heartbeat_seconds)
                except asyncio.TimeoutError:
                    event = self.build_event("heartbeat", None)
                yield format_sse(event)
        finally:
            self.remove_client(queue)
