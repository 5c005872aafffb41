"""
Tests for the Event Bus
========================
"""

import sys
from pathlib import Path
from unittest.mock import Mock

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gesture_capture.core.events import EventBus, Events


class TestEventBus:
    """Test suite for EventBus."""

    def test_emit_passes_kwargs(self):
        bus = EventBus()
        listener = Mock()
        bus.subscribe(Events.POSE_CAPTURED, listener)

        bus.emit(Events.POSE_CAPTURED, step=2, frame="f")

        listener.assert_called_once_with(step=2, frame="f")

    def test_priority_order(self):
        bus = EventBus()
        order = []
        bus.subscribe("e", lambda: order.append("low"), priority=0)
        bus.subscribe("e", lambda: order.append("high"), priority=10)

        bus.emit("e")
        assert order == ["high", "low"]

    def test_failing_listener_does_not_break_others(self):
        bus = EventBus()
        after = Mock()
        bus.subscribe("e", Mock(side_effect=RuntimeError("boom")), priority=1)
        bus.subscribe("e", after)

        bus.emit("e")
        after.assert_called_once()

    def test_buses_are_independent(self):
        first, second = EventBus(), EventBus()
        listener = Mock()
        first.subscribe("e", listener)
        second.emit("e")
        listener.assert_not_called()
