import threading

import pytest

from transcribe_tray.tasks import (
    PasteFromClipboard,
    TaskChannel,
    ToggleRecording,
    UndoText,
    fail_reply,
    send_reply,
)


def test_channel_is_fifo() -> None:
    channel = TaskChannel(capacity=3)
    first, second, third = ToggleRecording(), PasteFromClipboard(), UndoText()

    assert channel.send(first)
    assert channel.send(second)
    assert channel.send(third)

    assert channel.recv() is first
    assert channel.recv() is second
    assert channel.recv() is third


def test_send_blocks_while_full() -> None:
    channel = TaskChannel(capacity=1)
    assert channel.send(PasteFromClipboard())

    assert channel.send(PasteFromClipboard(), timeout=0.05) is False
    assert len(channel) == 1


def test_blocked_sender_proceeds_once_receiver_drains() -> None:
    channel = TaskChannel(capacity=1)
    channel.send(PasteFromClipboard())
    second = UndoText()
    results = []

    sender = threading.Thread(target=lambda: results.append(channel.send(second)))
    sender.start()
    channel.recv()
    sender.join(timeout=2.0)

    assert results == [True]
    assert channel.recv() is second


def test_close_rejects_new_tasks_and_wakes_blocked_sender() -> None:
    channel = TaskChannel(capacity=1)
    channel.send(PasteFromClipboard())
    results = []

    sender = threading.Thread(target=lambda: results.append(channel.send(PasteFromClipboard())))
    sender.start()
    channel.close()
    sender.join(timeout=2.0)

    assert results == [False]
    assert channel.send(PasteFromClipboard()) is False


def test_recv_drains_queued_tasks_after_close_then_returns_none() -> None:
    channel = TaskChannel(capacity=1)
    task = PasteFromClipboard()
    channel.send(task)
    channel.close()

    assert channel.recv() is task
    assert channel.recv() is None
    assert channel.closed is True


def test_recv_times_out_with_none() -> None:
    assert TaskChannel().recv(timeout=0.01) is None


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        TaskChannel(capacity=0)


def test_reply_is_resolved_only_once() -> None:
    task = ToggleRecording()

    assert send_reply(task.reply, b"abc") is True
    assert send_reply(task.reply, b"def") is False
    fail_reply(task, RuntimeError("late"))

    assert task.reply.result() == b"abc"


def test_fail_reply_resolves_pending_reply_with_exception() -> None:
    task = UndoText()

    fail_reply(task, RuntimeError("gone"))

    with pytest.raises(RuntimeError, match="gone"):
        task.reply.result(timeout=0)


def test_fail_reply_ignores_tasks_without_reply() -> None:
    fail_reply(PasteFromClipboard(), RuntimeError("ignored"))
