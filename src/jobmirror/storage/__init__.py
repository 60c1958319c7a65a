"""Storage and persistence layer."""

from jobmirror.storage.job_store import JobStore, SyncSession
from jobmirror.storage.ledger import RunLedger
from jobmirror.storage.queries import list_active_jobs, list_expiring_jobs, query_jobs

__all__ = ["JobStore", "RunLedger", "SyncSession", "list_active_jobs", "list_expiring_jobs", "query_jobs"]
