"""Pydantic schemas for sleep input, reports and exports."""

from sleep_pattern_server.schemas.export import MLExport, MLFeatureVector
from sleep_pattern_server.schemas.sleep import (
    AdvancedMetrics,
    AnalysisInput,
    AnalysisReport,
    Chronotype,
    CircadianStability,
    DailyRecord,
    NightCheck,
)
from sleep_pattern_server.schemas.sleep_run import ReportModel, SleepEstimatorRun

__all__ = [
    "AdvancedMetrics",
    "AnalysisInput",
    "AnalysisReport",
    "Chronotype",
    "CircadianStability",
    "DailyRecord",
    "MLExport",
    "MLFeatureVector",
    "NightCheck",
    "ReportModel",
    "SleepEstimatorRun",
]
