from __future__ import annotations

from overload.metrics.aggregator import Classifier, Tally, classify_outcome, summarize
from overload.metrics.models import ErrorType, Outcome, OutcomeClass, Summary

__all__ = [
    "Classifier",
    "ErrorType",
    "Outcome",
    "OutcomeClass",
    "Summary",
    "Tally",
    "classify_outcome",
    "summarize",
]
