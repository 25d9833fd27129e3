"""
Error classification system for signal evaluation.

This module provides the structured exception hierarchy for errors
encountered while ingesting candle data, parsing signal candidates and
building the evaluation pipeline.
"""

from .data_quality import (
    DataQualityError,
    TemporalDataError,
    MissingDataError,
    MalformedDataError,
    InsufficientDataError,
    InvalidCandidateError,
)
from .system_failures import (
    SystemFailureError,
    ConfigurationError,
    IndicatorCalculationError,
)

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "TemporalDataError",
    "MissingDataError",
    "MalformedDataError",
    "InsufficientDataError",
    "InvalidCandidateError",
    # System Failures
    "SystemFailureError",
    "ConfigurationError",
    "IndicatorCalculationError",
]
