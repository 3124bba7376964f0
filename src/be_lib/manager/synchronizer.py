# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Synchronization of tracked jobs with the bulk status reported by a backend.

`StatusSynchronizer` owns the cache of the last bulk status query and the
registry of tracked jobs. Both are guarded by a single lock. A refresh issues
exactly one bulk query, replaces the cache as a whole, and reconciles the fresh
records into the tracked jobs. Lookups consult the cache under the same lock,
so they observe either the state before or after a refresh, never a mix.

Reconciliation never changes a job that is already in a terminal state and
never regresses a job that is missing from the fresh records. Jobs reaching a
terminal state or completing with an unknown outcome stop being tracked.
"""

import threading
import time

from be_lib.batch.interface import BatchAdapter, StatusRecord
from be_lib.core.config import CFG
from be_lib.core.error import BEError
from be_lib.core.logger import get_logger
from be_lib.execution.service import ExecutionService
from be_lib.job.job import Job
from be_lib.job.job_id import JobID
from be_lib.properties.states import JobState

logger = get_logger(__name__)


class StatusSynchronizer:
    """
    Cache of the bulk backend status and registry of tracked jobs.
    """

    def __init__(
        self,
        service: ExecutionService,
        adapter: type[BatchAdapter],
        track_only_started_jobs: bool = False,
        user: str | None = None,
    ):
        """
        Args:
            service (ExecutionService): Service executing the status queries.
            adapter (type[BatchAdapter]): Adapter building and parsing the status queries.
            track_only_started_jobs (bool): Scope the status query to the tracked jobs
                if only a few of them are tracked.
            user (str | None): Restrict unscoped status queries to jobs of this user.
        """
        self._service = service
        self._adapter = adapter
        self._track_only_started_jobs = track_only_started_jobs
        self._user = user

        self._lock = threading.Lock()
        # job id -> last known status
        self._cache: dict[str, StatusRecord] = {}
        # monotonic time of the last successful refresh; None if never refreshed
        self._cache_time: float | None = None
        # number of refresh attempts performed
        self._generation = 0
        # job id -> tracked jobs
        self._listeners: dict[str, list[Job]] = {}
        # job id -> number of polls reporting an unrecognized state
        self._unknown_polls: dict[str, int] = {}

    def isPollingEnabled(self) -> bool:
        """Check whether the backend is polled at all."""
        return not self._adapter.executesWithoutJobSystem()

    def addListener(self, job: Job) -> None:
        """
        Start tracking the job. Jobs without a valid identifier are ignored.
        """
        if not (key := StatusSynchronizer._key(job.getJobId())):
            logger.debug(f"Not tracking {job}: no valid job id.")
            return

        with self._lock:
            jobs = self._listeners.setdefault(key, [])
            if not any(x is job for x in jobs):
                jobs.append(job)

    def removeListener(self, job: Job) -> None:
        """Stop tracking the job."""
        with self._lock:
            self._removeListenerUnlocked(job)

    def getTrackedJobIds(self) -> list[str]:
        with self._lock:
            return sorted(self._listeners)

    def isTracked(self, job: Job) -> bool:
        key = StatusSynchronizer._key(job.getJobId())
        with self._lock:
            return any(x is job for x in self._listeners.get(key, []))

    def isCacheExpired(self) -> bool:
        """
        Check whether the cache was never populated or is older than the configured time budget.
        """
        with self._lock:
            return self._isCacheExpiredUnlocked()

    def refresh(self, force: bool = False) -> bool:
        """
        Query the backend for the status of its jobs and reconcile the tracked jobs.

        Without `force`, the query is only issued if the cache is expired.
        Forced refreshes requested while another refresh is in progress are
        coalesced with it: the waiting caller does not issue another query.

        A failing query leaves the cache as it was and is only logged.

        Args:
            force (bool): Refresh even if the cache is still fresh.

        Returns:
            bool: True if a query was issued by this call, False otherwise.
        """
        if not self.isPollingEnabled():
            return False

        generation = self._generation
        with self._lock:
            if force and self._generation != generation:
                logger.debug("Status was refreshed while waiting for the lock.")
                return False

            if not force and not self._isCacheExpiredUnlocked():
                return False

            self._refreshUnlocked()
            return True

    def queryJobStatus(
        self, jobs: list[Job], force: bool = False
    ) -> dict[Job, JobState]:
        """
        Return the best-known state of each of the jobs.

        The cache is refreshed first if forced, never populated, or expired.
        Each job is then reconciled against the cache.

        Args:
            jobs (list[Job]): Jobs to get the state of.
            force (bool): Refresh the cache even if it is still fresh.

        Returns:
            dict[Job, JobState]: State of each job.
        """
        self.refresh(force)

        states = {}
        with self._lock:
            for job in jobs:
                record = self._cache.get(StatusSynchronizer._key(job.getJobId()))
                self._reconcileUnlocked(job, record, count_poll=False)
                states[job] = job.getJobState()

        return states

    def queryStatusById(
        self, job_ids: list[JobID | str], force: bool = False
    ) -> dict[str, JobState]:
        """
        Return the cached state of jobs identified by their identifiers.

        Jobs not present in the cache are reported as UNKNOWN.
        """
        self.refresh(force)

        with self._lock:
            states = {}
            for job_id in job_ids:
                job_id = job_id if isinstance(job_id, JobID) else JobID(job_id)
                record = self._cache.get(StatusSynchronizer._key(job_id))
                states[str(job_id)] = record.state if record else JobState.UNKNOWN

            return states

    def queryStatusAll(self, force: bool = False) -> dict[str, JobState]:
        """Return the cached state of all jobs reported by the backend."""
        self.refresh(force)

        with self._lock:
            return {job_id: record.state for job_id, record in self._cache.items()}

    def _isCacheExpiredUnlocked(self) -> bool:
        if self._cache_time is None:
            return True
        return time.monotonic() - self._cache_time > CFG.manager.status_cache_ttl

    def _refreshUnlocked(self) -> None:
        """
        Issue the bulk status query and replace the cache. Must hold the lock.
        """
        try:
            self._queryAndReconcileUnlocked()
        finally:
            # callers waiting for the lock since before this point skip their refresh
            self._generation += 1

    def _queryAndReconcileUnlocked(self) -> None:
        try:
            command = self._adapter.buildStatusQuery(*self._queryScopeUnlocked())
            logger.debug(f"Querying job states: {command}")
            result = self._service.execute(command)
        except BEError as e:
            logger.warning(f"Could not query the state of jobs, using cached states: {e}")
            return

        if not result.successful:
            logger.warning(
                f"Query of job states failed with exit code {result.exit_code}, using cached states: "
                f"{' '.join(result.error_lines).strip()}"
            )
            return

        self._cache = self._adapter.parseStatus(result.result_lines)
        self._cache_time = time.monotonic()
        logger.debug(f"Obtained state of {len(self._cache)} jobs.")

        for key, jobs in list(self._listeners.items()):
            for job in list(jobs):
                self._reconcileUnlocked(job, self._cache.get(key), count_poll=True)

    def _queryScopeUnlocked(self) -> tuple[list[JobID] | None, str | None]:
        """
        Return the job identifiers and the user the status query should be restricted to.
        """
        job_ids = None
        if (
            self._track_only_started_jobs
            and 0 < len(self._listeners) < CFG.manager.scoped_query_limit
        ):
            job_ids = [JobID(key) for key in sorted(self._listeners)]

        return job_ids, self._user

    def _reconcileUnlocked(
        self, job: Job, record: StatusRecord | None, count_poll: bool
    ) -> None:
        """
        Apply a status record to the job. Must hold the lock.

        Args:
            job (Job): The job to update.
            record (StatusRecord | None): Cached status of the job, if any.
            count_poll (bool): Whether the record comes from a fresh poll
                (counted towards the grace period of unrecognized states).
        """
        if job.getJobState().isTerminal():
            self._removeListenerUnlocked(job)
            return

        if record is None:
            return

        if record.state == JobState.UNKNOWN_SUBMITTED:
            key = record.job_id
            polls = self._unknown_polls.get(key, 0)
            if polls < CFG.manager.unknown_submitted_grace_polls:
                if count_poll:
                    self._unknown_polls[key] = polls + 1
                return

            logger.debug(f"{job} is in an unrecognized state, considering it failed.")
            job.setJobState(JobState.FAILED)
        else:
            job.setJobState(record.state)

        job.updateJobInfo(record.info)

        # finished jobs are no longer part of the scoped status query
        if job.getJobState().isFinished():
            self._removeListenerUnlocked(job)

    def _removeListenerUnlocked(self, job: Job) -> None:
        key = StatusSynchronizer._key(job.getJobId())
        jobs = [x for x in self._listeners.get(key, []) if x is not job]
        if jobs:
            self._listeners[key] = jobs
        else:
            self._listeners.pop(key, None)
            self._unknown_polls.pop(key, None)

    @staticmethod
    def _key(job_id: JobID) -> str | None:
        return job_id.shortId if job_id.isValid() else None
