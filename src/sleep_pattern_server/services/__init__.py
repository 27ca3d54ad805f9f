"""Application services.

``SleepAnalysisService`` lives in ``services.sleep_analysis`` and is not
re-exported here: it depends on the transformers, which in turn depend on
the engine.
"""

from sleep_pattern_server.services.engine import AnalysisConfig, SleepAnalysisEngine
from sleep_pattern_server.services.parser import InputParser
from sleep_pattern_server.services.suggestions import SuggestionGenerator

__all__ = [
    "AnalysisConfig",
    "InputParser",
    "SleepAnalysisEngine",
    "SuggestionGenerator",
]
