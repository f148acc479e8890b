"""
Observer fan-out.

Every dashboard connection is an observer with its own outbound queue. Publishing
only enqueues, so a broadcast never waits on a slow socket and each observer
receives events in the order they were published.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional, Protocol
from uuid import uuid4

from relaydesk.infra.logging_config import get_logger
from relaydesk.schemas.events import ObserverEvent, WsOutbound

logger = get_logger("fanout")


class EventPublisher(Protocol):
    def publish(self, event: ObserverEvent, data: Any = None) -> None: ...


class Observer(Protocol):
    id: str

    def send(self, event: ObserverEvent, data: Any = None) -> None: ...
    def close(self) -> None: ...


class JsonSocket(Protocol):
    async def send_json(self, data: Any) -> None: ...


class WebSocketObserver:
    """
    Observer backed by a websocket; `run_writer` drains the queue onto the socket.

    When a socket write fails the observer closes itself and calls `on_failure`
    so its owner can detach it.
    """

    def __init__(
        self,
        websocket: JsonSocket,
        observer_id: Optional[str] = None,
        on_failure: Optional[Callable[["WebSocketObserver"], None]] = None,
    ) -> None:
        self.id = observer_id or uuid4().hex
        self._websocket = websocket
        self._on_failure = on_failure
        self._queue: asyncio.Queue[Optional[dict[str, Any]]] = asyncio.Queue()
        self._closed = False

    def send(self, event: ObserverEvent, data: Any = None) -> None:
        if self._closed:
            return
        self._queue.put_nowait(WsOutbound(type=event, data=data).to_wire())

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def backlog(self) -> int:
        return self._queue.qsize()

    async def run_writer(self) -> None:
        while True:
            item = await self._queue.get()
            if item is None:
                return
            try:
                await self._websocket.send_json(item)
            except Exception as exc:
                logger.warning(
                    "Observer socket write failed",
                    extra={"context": {"observer_id": self.id, "error": str(exc)}},
                )
                self._closed = True
                self._drain()
                if self._on_failure is not None:
                    self._on_failure(self)
                return

    def _drain(self) -> None:
        while not self._queue.empty():
            self._queue.get_nowait()


class ObserverHub:
    """Broadcasts to every attached observer; replay is done by the caller before attach."""

    def __init__(self) -> None:
        self._observers: dict[str, Observer] = {}

    def attach(self, observer: Observer) -> None:
        self._observers[observer.id] = observer
        logger.info(
            "Observer connected",
            extra={"context": {"observer_id": observer.id, "count": self.count}},
        )

    def detach(self, observer: Observer) -> None:
        if self._observers.pop(observer.id, None) is not None:
            observer.close()
            logger.info(
                "Observer disconnected",
                extra={"context": {"observer_id": observer.id, "count": self.count}},
            )

    @property
    def count(self) -> int:
        return len(self._observers)

    def publish(self, event: ObserverEvent, data: Any = None) -> None:
        for observer in list(self._observers.values()):
            try:
                observer.send(event, data)
            except Exception as exc:
                logger.warning(
                    "Dropping observer after failed send",
                    extra={"context": {"observer_id": observer.id, "error": str(exc)}},
                )
                self.detach(observer)
