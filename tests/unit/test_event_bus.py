import threading
import pytest
from wav2mp3.infrastructure.event_bus import EventBus
from wav2mp3.domain.events import Event

class MockEvent(Event):
    message: str

class OtherEvent(Event):
    pass

def test_event_bus_subscribe_publish():
    bus = EventBus()
    received_events = []

    def callback(event: MockEvent):
        received_events.append(event)

    bus.subscribe(MockEvent, callback)

    event = MockEvent(message="hello")
    bus.publish(event)

    assert len(received_events) == 1
    assert received_events[0].message == "hello"

def test_event_bus_multiple_subscribers():
    bus = EventBus()
    results = {"a": False, "b": False}

    bus.subscribe(MockEvent, lambda e: results.update({"a": True}))
    bus.subscribe(MockEvent, lambda e: results.update({"b": True}))

    bus.publish(MockEvent(message="test"))

    assert results["a"] is True
    assert results["b"] is True

def test_event_bus_decorator_subscribe():
    bus = EventBus()
    received = []

    @bus.subscribe(MockEvent)
    def on_event(event: MockEvent):
        received.append(event)

    bus.publish(MockEvent(message="decorator"))
    assert len(received) == 1
    assert received[0].message == "decorator"

def test_event_bus_ignores_unsubscribed_types():
    bus = EventBus()
    received = []
    bus.subscribe(MockEvent, received.append)

    bus.publish(OtherEvent())

    assert received == []

def test_event_bus_publish_from_many_threads():
    bus = EventBus()
    received = []
    lock = threading.Lock()

    def record(event):
        with lock:
            received.append(event.message)

    bus.subscribe(MockEvent, record)
    threads = [
        threading.Thread(target=bus.publish, args=(MockEvent(message=str(i)),))
        for i in range(20)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(received, key=int) == [str(i) for i in range(20)]
