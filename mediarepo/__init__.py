"""SQLite storage, datastores, upload steps and quotas for a Matrix media repository."""

__version__ = "0.1.0"