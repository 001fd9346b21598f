from ragassist.providers.records.sqlite_record_store import SQLiteRecordStore

__all__ = ["SQLiteRecordStore"]
