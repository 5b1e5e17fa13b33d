"""Pydantic models for CUV."""

from cuv.models.analytics import (
    AggregatedMetrics,
    DataQualityAnalysis,
    DailyPRUAnalysis,
    FeatureAdoption,
    ImpactData,
    MetricsStats,
    UserDetailedMetrics,
    UserSummary,
)
from cuv.models.parsing import FileError, MultiFileProgress, MultiFileResult
from cuv.models.records import (
    FeatureTotal,
    IdeTotal,
    LanguageFeatureTotal,
    LanguageModelTotal,
    ModelFeatureTotal,
    PluginVersion,
    UsageRecord,
)

__all__ = [
    "AggregatedMetrics",
    "DataQualityAnalysis",
    "DailyPRUAnalysis",
    "FeatureAdoption",
    "FeatureTotal",
    "FileError",
    "IdeTotal",
    "ImpactData",
    "LanguageFeatureTotal",
    "LanguageModelTotal",
    "MetricsStats",
    "ModelFeatureTotal",
    "MultiFileProgress",
    "MultiFileResult",
    "PluginVersion",
    "UsageRecord",
    "UserDetailedMetrics",
    "UserSummary",
]
