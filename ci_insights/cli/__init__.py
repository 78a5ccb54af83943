"""
Terminal presentation helpers used by ``bin/insights.py``.
"""
from . import display

__all__ = ["display"]
