import threading
import time

import pytest

from dronestream.blocking_queue import BlockingQueue


def _start(target):
    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    return thread


def test_push_then_pop_returns_same_item():
    queue = BlockingQueue(4)
    queue.push(42)
    assert queue.pop() == 42


def test_pop_on_empty_queue_blocks_until_push():
    queue = BlockingQueue(4)

    def producer():
        time.sleep(0.02)
        queue.push(99)

    thread = _start(producer)
    value = queue.pop()
    thread.join(timeout=5)
    assert value == 99


def test_push_on_full_queue_blocks_until_pop():
    queue = BlockingQueue(2)
    queue.push(1)
    queue.push(2)
    popped = []

    def consumer():
        time.sleep(0.02)
        popped.append(queue.pop())

    thread = _start(consumer)
    assert queue.push(3) is True
    thread.join(timeout=5)
    assert popped == [1]
    assert [queue.pop(), queue.pop()] == [2, 3]


def test_close_unblocks_blocked_pop():
    queue = BlockingQueue(4)
    result = ["unset"]

    def popper():
        result[0] = queue.pop()

    thread = _start(popper)
    time.sleep(0.02)
    queue.close()
    thread.join(timeout=5)
    assert not thread.is_alive()
    assert result[0] is None
    assert queue.pop() is None


def test_close_unblocks_blocked_push():
    queue = BlockingQueue(1)
    queue.push(0)
    accepted = []

    def pusher():
        accepted.append(queue.push(42))

    thread = _start(pusher)
    time.sleep(0.02)
    queue.close()
    thread.join(timeout=5)
    assert accepted == [False]
    assert queue.pop() == 0
    assert queue.pop() is None


def test_items_pushed_before_close_are_still_retrievable():
    queue = BlockingQueue(8)
    for value in (10, 20, 30):
        queue.push(value)
    queue.close()
    assert list(queue) == [10, 20, 30]


def test_push_after_close_is_dropped():
    queue = BlockingQueue(8)
    queue.close()
    assert queue.push(5) is False
    assert queue.pop() is None


def test_none_cannot_be_pushed():
    queue = BlockingQueue(2)
    with pytest.raises(ValueError):
        queue.push(None)


def test_multiple_producers_and_consumers_deliver_all_items_exactly_once():
    queue = BlockingQueue(16)
    producers_count = 4
    consumers_count = 4
    per_producer = 250
    total = producers_count * per_producer
    buckets = [[] for _ in range(consumers_count)]

    def produce(index):
        for item in range(per_producer):
            queue.push(index * per_producer + item)

    def consume(index):
        for item in queue:
            buckets[index].append(item)

    producers = [
        threading.Thread(target=produce, args=(i,), daemon=True)
        for i in range(producers_count)
    ]
    consumers = [
        threading.Thread(target=consume, args=(i,), daemon=True)
        for i in range(consumers_count)
    ]
    for thread in producers + consumers:
        thread.start()
    for thread in producers:
        thread.join(timeout=10)
    queue.close()
    for thread in consumers:
        thread.join(timeout=10)

    collected = sorted(item for bucket in buckets for item in bucket)
    assert len(collected) == total
    assert collected == list(range(total))
    assert queue.pop() is None