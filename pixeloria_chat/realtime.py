"""Fan-out of chat events to live viewers.

Two backends share one interface (``emit``, ``listen``, ``subscriber_count``):

* ``RedisBroadcaster`` publishes on one Redis channel per session, so an event
  emitted by any worker process reaches viewers connected to any other. Used
  whenever ``REDIS_URL`` is configured.
* ``LocalBroadcaster`` keeps a bounded queue per viewer inside the process.
  It only reaches viewers served by the same process, so it is meant for a
  single-process deployment and for tests.

Browsers consume ``listen`` as Server-Sent Events.
"""

import json
import logging
import queue
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Dict, Iterator, Set

import redis

logger = logging.getLogger(__name__)

KEEPALIVE_FRAME = ": keepalive\n\n"


def sse_frame(event: str, data: Dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


class Broadcaster(ABC):
    @abstractmethod
    def emit(self, session_id: str, event: str, payload: Dict[str, Any]) -> int:
        """Send ``event`` to every viewer of ``session_id``; returns how many got it."""
        ...

    @abstractmethod
    def listen(self, session_id: str, keepalive: float = 15.0) -> Iterator[str]:
        ...

    @abstractmethod
    def subscriber_count(self, session_id: str) -> int:
        ...


class LocalBroadcaster(Broadcaster):
    """In-process queues; ``emit`` drops events for a viewer whose queue is full."""

    def __init__(self, max_queue: int = 100):
        self.max_queue = max_queue
        self._lock = threading.Lock()
        self._subscribers: Dict[str, Set[queue.Queue]] = defaultdict(set)

    def subscribe(self, session_id: str) -> queue.Queue:
        q: queue.Queue = queue.Queue(maxsize=self.max_queue)
        with self._lock:
            self._subscribers[session_id].add(q)
        return q

    def unsubscribe(self, session_id: str, q: queue.Queue) -> None:
        with self._lock:
            subscribers = self._subscribers.get(session_id)
            if subscribers is None:
                return
            subscribers.discard(q)
            if not subscribers:
                del self._subscribers[session_id]

    def subscriber_count(self, session_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(session_id, ()))

    def emit(self, session_id: str, event: str, payload: Dict[str, Any]) -> int:
        with self._lock:
            targets = list(self._subscribers.get(session_id, ()))
        delivered = 0
        for q in targets:
            try:
                q.put_nowait({"event": event, "data": payload})
                delivered += 1
            except queue.Full:
                logger.warning(f"[BROADCAST] Dropped {event} for a slow viewer of {session_id}")
        return delivered

    def listen(self, session_id: str, keepalive: float = 15.0) -> Iterator[str]:
        q = self.subscribe(session_id)
        try:
            while True:
                try:
                    item = q.get(timeout=keepalive)
                except queue.Empty:
                    yield KEEPALIVE_FRAME
                    continue
                yield sse_frame(item['event'], item['data'])
        finally:
            self.unsubscribe(session_id, q)


class RedisBroadcaster(Broadcaster):
    """Redis pub/sub on ``<prefix><session_id>`` channels."""

    def __init__(self, client: redis.Redis, prefix: str = "pixeloria:chat:"):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str) -> 'RedisBroadcaster':
        return cls(redis.from_url(url, decode_responses=True))

    def channel(self, session_id: str) -> str:
        return f"{self.prefix}{session_id}"

    def emit(self, session_id: str, event: str, payload: Dict[str, Any]) -> int:
        message = json.dumps({"event": event, "data": payload})
        return int(self.client.publish(self.channel(session_id), message))

    def subscriber_count(self, session_id: str) -> int:
        counts = self.client.pubsub_numsub(self.channel(session_id))
        return int(counts[0][1]) if counts else 0

    def listen(self, session_id: str, keepalive: float = 15.0) -> Iterator[str]:
        channel = self.channel(session_id)
        pubsub = self.client.pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(channel)
        logger.info(f"[BROADCAST] Subscribed to Redis channel: {channel}")
        try:
            while True:
                message = pubsub.get_message(timeout=keepalive)
                if message is None:
                    yield KEEPALIVE_FRAME
                    continue
                try:
                    item = json.loads(message['data'])
                    frame = sse_frame(item['event'], item['data'])
                except (ValueError, KeyError, TypeError) as e:
                    logger.warning(f"[BROADCAST] Skipping malformed event on {channel}: {e.__class__.__name__}")
                    continue
                yield frame
        finally:
            pubsub.close()
