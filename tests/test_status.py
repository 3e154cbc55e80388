"""Tests for batchjobs.schemas.status and batchjobs.interrupt.

Covers the BatchStatus rank order, aggregation via max(), token
serialization, and the JobInterrupted target status.
"""

import pytest

from batchjobs.interrupt import JobInterrupted, final_status_for
from batchjobs.schemas import BatchStatus


class TestBatchStatusOrder:
    """Tests for the total order of BatchStatus."""

    def test_rank_order(self):
        ordered = [
            BatchStatus.UNKNOWN,
            BatchStatus.STARTING,
            BatchStatus.STARTED,
            BatchStatus.STOPPING,
            BatchStatus.STOPPED,
            BatchStatus.FAILED,
            BatchStatus.COMPLETED,
        ]
        assert sorted(reversed(ordered)) == ordered
        for lower, higher in zip(ordered, ordered[1:]):
            assert lower < higher
            assert higher > lower
            assert lower <= higher
            assert higher >= lower

    def test_order_is_not_alphabetical(self):
        # "COMPLETED" < "STARTED" as strings, but not as statuses
        assert BatchStatus.COMPLETED > BatchStatus.STARTED

    def test_compare(self):
        assert BatchStatus.compare(BatchStatus.STARTED, BatchStatus.FAILED) == -1
        assert BatchStatus.compare(BatchStatus.FAILED, BatchStatus.STARTED) == 1
        assert BatchStatus.compare(BatchStatus.STOPPED, BatchStatus.STOPPED) == 0

    def test_comparison_with_other_types_unsupported(self):
        with pytest.raises(TypeError):
            BatchStatus.STARTED < 3


class TestBatchStatusMax:
    """Tests for aggregating concurrently reported statuses."""

    def test_max_of_two(self):
        assert BatchStatus.max(BatchStatus.STARTED, BatchStatus.STOPPED) == BatchStatus.STOPPED

    def test_max_of_iterable(self):
        statuses = [BatchStatus.STARTED, BatchStatus.COMPLETED, BatchStatus.FAILED]
        assert BatchStatus.max(statuses) == BatchStatus.COMPLETED

    def test_max_of_nothing_is_unknown(self):
        assert BatchStatus.max() == BatchStatus.UNKNOWN
        assert BatchStatus.max([]) == BatchStatus.UNKNOWN

    def test_upgrade_to_never_downgrades(self):
        assert BatchStatus.FAILED.upgrade_to(BatchStatus.STARTED) == BatchStatus.FAILED
        assert BatchStatus.STARTED.upgrade_to(BatchStatus.STOPPING) == BatchStatus.STOPPING


class TestBatchStatusProperties:
    """Tests for status predicates and serialization."""

    def test_terminal_statuses(self):
        terminal = {s for s in BatchStatus if s.is_terminal}
        assert terminal == {BatchStatus.STOPPED, BatchStatus.FAILED, BatchStatus.COMPLETED}

    def test_running_statuses(self):
        assert BatchStatus.STARTING.is_running
        assert BatchStatus.STARTED.is_running
        assert not BatchStatus.STOPPING.is_running

    def test_tokens(self):
        assert {s.value for s in BatchStatus} == {
            "STARTING", "STARTED", "STOPPING", "STOPPED", "COMPLETED", "FAILED", "UNKNOWN",
        }
        assert str(BatchStatus.COMPLETED) == "COMPLETED"

    def test_from_string(self):
        assert BatchStatus.from_string("stopped") == BatchStatus.STOPPED
        assert BatchStatus.from_string("COMPLETED") is BatchStatus.COMPLETED

    def test_from_string_unknown_token(self):
        with pytest.raises(ValueError, match="Unknown batch status"):
            BatchStatus.from_string("ABANDONED")

    def test_value_equality(self):
        assert BatchStatus("STOPPED") is BatchStatus.STOPPED
        assert BatchStatus.STOPPED == "STOPPED"
        assert len({BatchStatus.FAILED, BatchStatus("FAILED")}) == 1


class TestJobInterrupted:
    """Tests for the cooperative cancellation signal."""

    def test_default_status_is_stopped(self):
        signal = JobInterrupted("my_job_interrupted")
        assert signal.status == BatchStatus.STOPPED

    def test_explicit_status(self):
        signal = JobInterrupted("my_job_interrupted", BatchStatus.COMPLETED)
        assert signal.status == BatchStatus.COMPLETED

    def test_message_and_cause(self):
        cause = ValueError("reader exhausted")
        signal = JobInterrupted("stop requested", cause=cause)
        assert str(signal) == "stop requested"
        assert signal.cause is cause
        assert signal.__cause__ is cause

    def test_is_not_a_batchjobs_error(self):
        from batchjobs.errors import BatchJobsError
        assert not issubclass(JobInterrupted, BatchJobsError)

    def test_final_status_for_interruption(self):
        signal = JobInterrupted("done early", BatchStatus.COMPLETED)
        assert final_status_for(signal) == BatchStatus.COMPLETED
        assert final_status_for(JobInterrupted("stop")) == BatchStatus.STOPPED

    def test_final_status_for_failure(self):
        assert final_status_for(RuntimeError("boom")) == BatchStatus.FAILED
