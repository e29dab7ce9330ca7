"""Pydantic v2 models shared across the exporter.

Re-exports all model classes for convenient import::

    from tracker_exporter.models import StatisticsRecord, MetricsSnapshot
"""

from .snapshot import MetricsSnapshot
from .solver import ChallengeSolution, SolverCookie, SolverResponse, SolverSolution
from .statistics import StatisticsRecord

__all__ = [
    "StatisticsRecord",
    "MetricsSnapshot",
    "ChallengeSolution",
    "SolverCookie",
    "SolverResponse",
    "SolverSolution",
]
