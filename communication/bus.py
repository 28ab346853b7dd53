import asyncio
import time

from internal.logging import get_logger

FRAME_TOPIC = "frame"
EVENT_TOPIC = "event"


class Subscriber:
    __slots__ = ("name", "queue", "topics", "created_at", "received", "dropped")

    def __init__(self, name, queue, topics=None):
        self.name = name
        self.queue = queue
        self.topics = topics or set()
        self.created_at = time.time()
        self.received = 0
        self.dropped = 0

    def wants(self, topic):
        return not self.topics or topic in self.topics


class EventBus:
    """Copy-on-write pub/sub for frames and control events. Publish path is lock-free.

    Queue items are ``(topic, payload)`` tuples. The latest frame is kept so a
    new subscriber can draw immediately without waiting for the next tick.
    """

    def __init__(self, queue_size=50):
        self._lock = asyncio.Lock()
        self._subscribers = {}
        self._subscribers_snapshot = []
        self._queue_size = queue_size
        self._log = get_logger()
        self.last_frame = None
        self.total_published = 0
        self.total_delivered = 0
        self.total_dropped = 0

    async def subscribe(self, name, max_queue_size=None, topics=None):
        async with self._lock:
            if name in self._subscribers:
                return self._subscribers[name]
            subscriber = Subscriber(name, asyncio.Queue(maxsize=max_queue_size or self._queue_size),
                                    set(topics) if topics else set())
            self._subscribers[name] = subscriber
            self._subscribers_snapshot = list(self._subscribers.values())
            self._log.debug("subscriber added", subscriber=name)
            return subscriber

    async def unsubscribe(self, name):
        async with self._lock:
            if name not in self._subscribers:
                return False
            del self._subscribers[name]
            self._subscribers_snapshot = list(self._subscribers.values())
            self._log.debug("subscriber removed", subscriber=name)
            return True

    async def publish(self, item, topic=EVENT_TOPIC):
        if topic == FRAME_TOPIC:
            self.last_frame = item
        delivered = dropped = 0
        for subscriber in self._subscribers_snapshot:
            if not subscriber.wants(topic):
                continue
            try:
                subscriber.queue.put_nowait((topic, item))
                subscriber.received += 1
                delivered += 1
            except asyncio.QueueFull:
                subscriber.dropped += 1
                dropped += 1
        self.total_published += 1
        self.total_delivered += delivered
        self.total_dropped += dropped
        return delivered

    async def publish_frame(self, snapshot):
        return await self.publish(snapshot, FRAME_TOPIC)

    def get_stats(self):
        return {
            "subscriber_count": len(self._subscribers_snapshot),
            "total_published": self.total_published,
            "total_delivered": self.total_delivered,
            "total_dropped": self.total_dropped,
            "last_frame_tick": self.last_frame.tick if self.last_frame is not None else None,
        }

    async def get_subscriber_info(self):
        return [
            {"name": subscriber.name,
             "topics": sorted(subscriber.topics),
             "queued": subscriber.queue.qsize(),
             "received": subscriber.received,
             "dropped": subscriber.dropped}
            for subscriber in self._subscribers_snapshot
        ]
