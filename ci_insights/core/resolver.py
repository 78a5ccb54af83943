"""
Service Resolver

Maps raw test-suite labels onto a canonical service name and a test
category. Matching is a case-insensitive substring search against ordered
keyword tables; the first match wins and every label maps to something.
"""
from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

from .models import TestCategory, UNKNOWN_SERVICE

#: Ordered (keyword, canonical service name) pairs.
DEFAULT_SERVICE_KEYWORDS: List[Tuple[str, str]] = [
    ("user", "User Service"),
    ("order", "Order Service"),
    ("product", "Product Service"),
    ("notification", "Notification Service"),
    ("gateway", "Gateway Service"),
]

#: Ordered (keywords, category) rules. Anything unmatched is a unit test.
CATEGORY_RULES: List[Tuple[Tuple[str, ...], TestCategory]] = [
    (("unit", "component"), TestCategory.UNIT),
    (("api", "rest", "endpoint"), TestCategory.API),
    (("integration", "contract"), TestCategory.INTEGRATION),
    (("ui", "e2e", "end-to-end"), TestCategory.UI),
    (("system", "smoke", "regression"), TestCategory.SYSTEM),
]

DEFAULT_CATEGORY = TestCategory.UNIT


def service_slug(service_name: str) -> str:
    """
    Registry key for a canonical service name.

    >>> service_slug("Order Service")
    'order-service'
    """
    return re.sub(r"[^a-z0-9]+", "-", service_name.strip().lower()).strip("-")


class ServiceResolver:
    """Deterministic, side-effect-free label classifier."""

    def __init__(self, service_keywords: Optional[Sequence[Tuple[str, str]]] = None):
        keywords = service_keywords if service_keywords is not None else DEFAULT_SERVICE_KEYWORDS
        self.service_keywords: List[Tuple[str, str]] = [
            (keyword.lower(), name) for keyword, name in keywords
        ]

    def resolve_service(self, suite_label: Optional[str]) -> str:
        if not suite_label:
            return UNKNOWN_SERVICE
        label = suite_label.lower()
        for keyword, name in self.service_keywords:
            if keyword in label:
                return name
        return UNKNOWN_SERVICE

    def resolve_category(self, suite_label: Optional[str]) -> TestCategory:
        if not suite_label:
            return DEFAULT_CATEGORY
        label = suite_label.lower()
        for keywords, category in CATEGORY_RULES:
            if any(keyword in label for keyword in keywords):
                return category
        return DEFAULT_CATEGORY

    def resolve(self, suite_label: Optional[str]) -> Tuple[str, TestCategory]:
        return self.resolve_service(suite_label), self.resolve_category(suite_label)
