"""
Cooperative cancellation for job runs.

A step (or anything it calls) raises JobInterrupted to ask the executor to
stop the job. The executor is expected to:

- stop scheduling further steps of the affected job, checking between step
  boundaries rather than preempting a running step
- set the run's final status to the signal's status instead of FAILED
- not log or report the interruption as a crash

JobInterrupted does not derive from BatchJobsError, so handlers for
BatchJobsError never catch a cancellation.
"""

from typing import Optional

from batchjobs.schemas.status import BatchStatus


class JobInterrupted(Exception):
    """
    Signal that a job run must stop with a given final status.

    Attributes:
        message: Human-readable reason
        status: Final status of the run, STOPPED unless given explicitly
        cause: Error that led to the interruption, if any
    """

    def __init__(
        self,
        message: str,
        status: Optional[BatchStatus] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status if status is not None else BatchStatus.STOPPED
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return f"JobInterrupted({self.message!r}, status={self.status.value})"


def final_status_for(error: BaseException) -> BatchStatus:
    """
    Map an exception raised while running a step to the run's final status.

    JobInterrupted carries its own status; anything else is a failure.
    """
    if isinstance(error, JobInterrupted):
        return error.status
    return BatchStatus.FAILED
