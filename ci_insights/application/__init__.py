"""
Application layer: use-case services and the dependency container.
"""
from .container import Container
from .services import InsightsService, InsightsReport

__all__ = ["Container", "InsightsService", "InsightsReport"]
