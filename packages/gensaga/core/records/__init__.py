"""Generation record lifecycle."""

from gensaga.core.records.writer import RecordHandle, RecordWriter, session_title

__all__ = ["RecordHandle", "RecordWriter", "session_title"]
