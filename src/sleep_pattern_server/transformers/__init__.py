"""Analysis run -> export / storage shape transformers."""

from sleep_pattern_server.transformers.ml_export import MLExportTransformer
from sleep_pattern_server.transformers.sleep_run import SleepRunTransformer

__all__ = [
    "MLExportTransformer",
    "SleepRunTransformer",
]
