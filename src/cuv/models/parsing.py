"""Parsing progress and result models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from cuv.models.records import UsageRecord


class MultiFileProgress(BaseModel):
    """Progress of a sequential multi-file parse."""

    current_file: int
    total_files: int
    file_name: str
    records_processed: int = 0


class FileError(BaseModel):
    """A file that failed mid-parse; ``file_index`` is 1-based."""

    file_index: int
    file_name: str
    error: str


class MultiFileResult(BaseModel):
    """Records parsed across all files plus per-file failures."""

    metrics: list[UsageRecord] = Field(default_factory=list)
    errors: list[FileError] = Field(default_factory=list)
