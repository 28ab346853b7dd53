import asyncio
import json
import os
import sys
import threading
from enum import IntEnum

from utils.clock import format_timestamp


class LogLevel(IntEnum):
    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40


_logger = None
_logger_lock = threading.Lock()


class StructuredLogger:
    """JSON-per-line logger on stderr; extra keyword arguments become fields."""

    def __init__(self, level=LogLevel.INFO, stream=None):
        self.level = level
        self.stream = stream

    def _emit(self, level, message, error=None, **kwargs):
        if level < self.level:
            return
        record = {"timestamp": format_timestamp(), "level": level.name, "msg": message, **kwargs}
        if error:
            record["err"] = str(error)
        try:
            print(json.dumps(record, default=str), file=self.stream or sys.stderr, flush=True)
        except (OSError, ValueError):
            # closed stream during interpreter shutdown
            pass

    def debug(self, message, **kwargs):
        self._emit(LogLevel.DEBUG, message, **kwargs)

    def info(self, message, **kwargs):
        self._emit(LogLevel.INFO, message, **kwargs)

    def warn(self, message, error=None, **kwargs):
        self._emit(LogLevel.WARN, message, error, **kwargs)

    def error(self, message, error=None, **kwargs):
        self._emit(LogLevel.ERROR, message, error, **kwargs)

    @classmethod
    def configure(cls, min_level=LogLevel.INFO):
        global _logger
        if isinstance(min_level, str):
            min_level = LogLevel[min_level.upper()]
        with _logger_lock:
            _logger = cls(min_level)
        return _logger


def get_logger():
    global _logger
    if _logger is None:
        with _logger_lock:
            if _logger is None:
                _logger = StructuredLogger()
    return _logger


class AsyncEventLog:
    """Bounded queue of simulation records drained to a JSONL file.

    ``record`` never blocks the frame loop: when the queue is full the record
    is counted as dropped.
    """

    def __init__(self, file_path, queue_size=1000):
        self.path = file_path
        self.queue = asyncio.Queue(maxsize=queue_size)
        self._task = None
        self._stop = asyncio.Event()
        self._file_missing_logged = False
        self.written = 0
        self.dropped = 0

    def record(self, kind, data):
        try:
            self.queue.put_nowait({"timestamp": format_timestamp(), "kind": kind, "data": data})
            return True
        except asyncio.QueueFull:
            self.dropped += 1
        return False

    async def start(self):
        if self._task:
            return
        dir_path = os.path.dirname(self.path)
        if dir_path:
            os.makedirs(dir_path, exist_ok=True)
        self._stop.clear()
        self._task = asyncio.create_task(self._run())

    async def stop(self):
        self._stop.set()
        if self._task:
            await self._task
            self._task = None

    @property
    def running(self):
        return self._task is not None and not self._task.done()

    def get_stats(self):
        return {
            "queued": self.queue.qsize(),
            "written": self.written,
            "dropped": self.dropped,
        }

    def _write(self, file, item):
        file.write(json.dumps(item, default=str) + "\n")
        self.written += 1

    async def _run(self):
        with open(self.path, "a", encoding="utf-8") as file:
            while not self._stop.is_set():
                try:
                    item = await asyncio.wait_for(self.queue.get(), timeout=0.5)
                except asyncio.TimeoutError:
                    continue
                if not os.path.exists(self.path):
                    if not self._file_missing_logged:
                        get_logger().warn("event log deleted, records dropped", path=self.path)
                        self._file_missing_logged = True
                    self.dropped += 1
                    continue
                try:
                    self._write(file, item)
                    file.flush()
                except OSError as exc:
                    self.dropped += 1
                    get_logger().warn("event log write failed", error=exc, path=self.path)
            while not self.queue.empty():
                self._write(file, self.queue.get_nowait())
            file.flush()
