# shopsync/errors.py
"""Error taxonomy for a sync run.

`SyncAborted` subclasses stop the whole run and reach the caller.
`RecordError` subclasses only affect one record; the orchestrator counts
them as failures and moves on.
"""


class SyncError(Exception):
    pass


class SyncAborted(SyncError):
    """The run could not proceed at all."""


class RemoteUnavailable(SyncAborted):
    """Catalog fetch failed: network, auth, timeout or non-success response."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class StoreUnavailable(SyncAborted):
    """The database cannot be reached."""


class RecordError(SyncError):
    def __init__(self, message, record_id=None):
        super().__init__(message)
        self.record_id = record_id


class MalformedRecord(RecordError):
    pass


class PersistenceError(RecordError):
    pass


class SyncAlreadyRunning(SyncError):
    pass
