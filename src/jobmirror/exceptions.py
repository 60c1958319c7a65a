"""Error taxonomy shared by the sync engine, the store and the upstream client."""


class JobMirrorError(Exception):
    """Base class for all jobmirror errors."""


class UpstreamError(JobMirrorError):
    """Network failure, timeout, non-success status or malformed upstream payload."""


class StoreError(JobMirrorError):
    """Constraint violation or transaction failure in the local store."""


class NotFoundError(JobMirrorError):
    """A job or cached details row is not present in the store."""


class SyncInProgressError(JobMirrorError):
    """Another sync run currently holds the sync lock."""
