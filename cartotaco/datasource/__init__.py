"""
Remote data source layer.

Responsibilities:
- Expose every backing table through one small async query interface.
- Report failures as ``QueryResult.error`` instead of raising.
- Provide in-memory, CSV (pandas) and Supabase REST (httpx) backends.
"""
from __future__ import annotations

from ..config import DataSourceConfig
from .base import UNIQUE_VIOLATION, DataSource, ErrorInfo, QueryResult
from .csv_source import CsvDataSource
from .memory import MemoryDataSource
from .supabase import SupabaseDataSource


def create_data_source(config: DataSourceConfig) -> DataSource:
    if config.backend == "supabase":
        return SupabaseDataSource(config.supabase_url, config.supabase_key, timeout=config.timeout)
    if config.backend == "csv":
        return CsvDataSource(config.data_dir)
    return MemoryDataSource()


__all__ = [
    "CsvDataSource",
    "DataSource",
    "ErrorInfo",
    "MemoryDataSource",
    "QueryResult",
    "SupabaseDataSource",
    "UNIQUE_VIOLATION",
    "create_data_source",
]
