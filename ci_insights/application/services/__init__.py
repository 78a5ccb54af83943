"""
Application Services Package

Use case implementations that orchestrate domain logic.
"""

from .insights_service import InsightsService, InsightsReport

__all__ = [
    "InsightsService",
    "InsightsReport",
]
