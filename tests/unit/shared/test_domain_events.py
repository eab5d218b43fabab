"""Unit tests for domain events and the in-memory bus."""

from __future__ import annotations

from dataclasses import FrozenInstanceError, dataclass
from uuid import uuid4

import pytest

from shared.domain.events import DomainEvent, EntityChanged
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


@dataclass(frozen=True)
class WidgetMoved(EntityChanged):
    pass


class Recorder:
    def __init__(self):
        self.events = []

    def handle(self, event):
        self.events.append(event)


class TestDomainEvent:
    def test_event_name_is_class_name(self):
        event = WidgetMoved(aggregate_id=uuid4(), entity_type="widget", action="move")
        assert event.event_name == "WidgetMoved"

    def test_events_are_immutable(self):
        event = DomainEvent(aggregate_id=uuid4())
        with pytest.raises(FrozenInstanceError):
            event.aggregate_id = uuid4()


class TestInMemoryEventBus:
    def test_base_class_subscribers_receive_subclasses(self):
        bus = InMemoryEventBus()
        base, exact = Recorder(), Recorder()
        bus.subscribe(EntityChanged, base)
        bus.subscribe(WidgetMoved, exact)

        event = WidgetMoved(aggregate_id=uuid4())
        bus.publish(event)

        assert base.events == [event]
        assert exact.events == [event]

    def test_unrelated_subscribers_are_not_called(self):
        bus = InMemoryEventBus()
        recorder = Recorder()
        bus.subscribe(WidgetMoved, recorder)

        bus.publish(EntityChanged(aggregate_id=uuid4()))

        assert recorder.events == []

    def test_subscribing_twice_delivers_once(self):
        bus = InMemoryEventBus()
        recorder = Recorder()
        bus.subscribe(EntityChanged, recorder)
        bus.subscribe(EntityChanged, recorder)

        bus.publish(EntityChanged(aggregate_id=uuid4()))

        assert len(recorder.events) == 1

    def test_publish_on_commit_waits_for_commit(self, django_capture_on_commit_callbacks):
        bus = InMemoryEventBus()
        recorder = Recorder()
        bus.subscribe(EntityChanged, recorder)

        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            bus.publish_on_commit(EntityChanged(aggregate_id=uuid4()))

        assert recorder.events == []
        assert len(callbacks) == 1
