"""
Tests for the rescheduler and the in-memory work queue.
"""

import pytest

from conftest import FakeClock, ScriptedJob
from resumable_polling.exceptions import ConfigurationError
from resumable_polling.polling import InMemoryWorkQueue, Rescheduler


class TestRescheduler:
    """Test the two resumption paths."""

    def test_inline_release_releases_current_unit(self, job, container):
        rescheduler = Rescheduler(True, container=container)

        rescheduler.reschedule(job, 3)

        container.release.assert_called_once_with(job, 3)

    def test_dispatch_submits_new_equivalent_unit(self, job, dispatcher):
        rescheduler = Rescheduler(False, dispatcher=dispatcher)

        rescheduler.reschedule(job, 7)

        dispatcher.submit.assert_called_once()
        unit, delay = dispatcher.submit.call_args.args
        assert delay == 7
        assert unit is not job
        assert isinstance(unit, ScriptedJob)
        assert unit.get_polling_id() == job.get_polling_id()

    def test_only_selected_path_is_used(self, job, container, dispatcher):
        Rescheduler(True, container=container, dispatcher=dispatcher).reschedule(job, 3)

        container.release.assert_called_once()
        dispatcher.submit.assert_not_called()

    def test_inline_release_requires_container(self, dispatcher):
        with pytest.raises(ConfigurationError):
            Rescheduler(True, dispatcher=dispatcher)

    def test_dispatch_requires_dispatcher(self, container):
        with pytest.raises(ConfigurationError):
            Rescheduler(False, container=container)

    def test_enqueue_failures_propagate(self, job, dispatcher):
        dispatcher.submit.side_effect = RuntimeError("queue unavailable")

        with pytest.raises(RuntimeError, match="queue unavailable"):
            Rescheduler(False, dispatcher=dispatcher).reschedule(job, 3)


class TestInMemoryWorkQueue:
    """Test the local delayed queue."""

    def setup_method(self):
        """Set up test fixtures."""
        self.clock = FakeClock()
        self.queue = InMemoryWorkQueue(clock=self.clock)

    def test_units_become_due_after_delay(self):
        self.queue.release("a", 5)
        self.queue.submit("b", 2)

        assert self.queue.pop_due() == []

        self.clock.advance(2)
        assert self.queue.pop_due() == ["b"]

        self.clock.advance(3)
        assert self.queue.pop_due() == ["a"]
        assert len(self.queue) == 0

    def test_pending_records_path(self):
        self.queue.release("a", 1)
        self.queue.submit("b", 1)

        released = {q.unit: q.released for q in self.queue.pending()}
        assert released == {"a": True, "b": False}

    def test_next_available_at(self):
        assert self.queue.next_available_at() is None

        self.queue.submit("a", 9)
        self.queue.submit("b", 4)

        assert self.queue.next_available_at() == self.clock.now + 4
