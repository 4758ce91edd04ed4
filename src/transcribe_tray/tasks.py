"""Requests understood by the local task handler and the channel that carries them."""

from __future__ import annotations

import threading
from collections import deque
from concurrent.futures import Future, InvalidStateError
from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class ToggleRecording:
    reply: Future = field(default_factory=Future)


@dataclass(frozen=True)
class PasteFromClipboard:
    pass


@dataclass(frozen=True)
class UndoText:
    reply: Future = field(default_factory=Future)


Task = Union[ToggleRecording, PasteFromClipboard, UndoText]


def fail_reply(task: Task, exc: BaseException) -> None:
    """Resolve a still-pending reply with ``exc`` so its issuer stops waiting."""
    reply = getattr(task, "reply", None)
    if reply is None:
        return
    try:
        reply.set_exception(exc)
    except InvalidStateError:
        pass  # already answered


def send_reply(reply: Future, value: object) -> bool:
    try:
        reply.set_result(value)
    except InvalidStateError:
        return False
    return True


class TaskChannel:
    """Bounded FIFO with many senders and a single receiver.

    ``send`` blocks while the channel is full. After ``close`` no new task is
    accepted, but tasks already queued are still handed to the receiver.
    """

    def __init__(self, capacity: int = 1) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._items: deque[Task] = deque()
        self._closed = False
        self._cond = threading.Condition()

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def send(self, task: Task, timeout: float | None = None) -> bool:
        with self._cond:
            ready = self._cond.wait_for(
                lambda: self._closed or len(self._items) < self.capacity,
                timeout=timeout,
            )
            if not ready or self._closed:
                return False
            self._items.append(task)
            self._cond.notify_all()
            return True

    def recv(self, timeout: float | None = None) -> Task | None:
        with self._cond:
            self._cond.wait_for(lambda: self._closed or bool(self._items), timeout=timeout)
            if not self._items:
                return None
            task = self._items.popleft()
            self._cond.notify_all()
            return task

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()
