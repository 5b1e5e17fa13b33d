"""Configuration for CUV."""

from dataclasses import dataclass

from cuv.data.parser import DEFAULT_CHUNK_SIZE, SUPPORTED_EXTENSIONS, is_supported_file
from cuv.domain.filters import DateRange


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    accepted_extensions: tuple[str, ...] = SUPPORTED_EXTENSIONS
    default_date_range: DateRange = DateRange.ALL
    remove_unknown_languages: bool = False
    log_level: str = "WARNING"

    def is_supported_file(self, name: str) -> bool:
        return is_supported_file(name, self.accepted_extensions)
