from .paginated_source import (
    PaginatedRecordSource, PageRequest, RecordFilter, OrderBy,
    TEST_RUN_TABLE, TEST_RESULT_TABLE,
)
from .file_source import JsonFileRecordSource, InMemoryRecordSource

__all__ = [
    "PaginatedRecordSource", "PageRequest", "RecordFilter", "OrderBy",
    "TEST_RUN_TABLE", "TEST_RESULT_TABLE",
    "JsonFileRecordSource", "InMemoryRecordSource",
]
