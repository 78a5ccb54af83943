"""
Configuration Loader

Reads the service registry and scoring policy from YAML files.

Registry layout:
    services:                  service -> dependencies/dependents/criticality/api_endpoints
    coverage:                  service -> category -> {coverage, tests, avg_duration}
    historical_failure_rates:  service -> rate in [0, 1]
    scoring:                   optional ScoringPolicy overrides
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from ci_insights.analysis.policy import ScoringPolicy
from ci_insights.core.errors import ConfigurationError
from ci_insights.impact.registry import ServiceRegistry

logger = logging.getLogger(__name__)


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a YAML mapping, raising ConfigurationError on any problem."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the top level")
    return data


def load_registry(path: Union[str, Path]) -> ServiceRegistry:
    """Load the service registry from a YAML file."""
    data = load_yaml(path)
    services = data.get("services")
    if services is not None and not isinstance(services, dict):
        raise ConfigurationError(f"'services' in {path} must be a mapping")
    try:
        registry = ServiceRegistry.from_dict(data)
    except (TypeError, ValueError, AttributeError) as e:
        raise ConfigurationError(f"Malformed registry {path}: {e}") from e
    logger.info(
        "Loaded registry from %s: %d services, %d with coverage data",
        path, len(registry.graph.services), len(registry.coverage),
    )
    return registry


def load_scoring_policy(path: Union[str, Path]) -> ScoringPolicy:
    """
    Load a ScoringPolicy from a YAML file.

    Accepts either a dedicated policy file or a registry file with a
    ``scoring`` section. A missing section yields the default policy.
    """
    data = load_yaml(path)
    section = data.get("scoring", data if "services" not in data else {})
    if not isinstance(section, dict):
        raise ConfigurationError(f"'scoring' in {path} must be a mapping")
    try:
        return ScoringPolicy.from_dict(section)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Malformed scoring policy in {path}: {e}") from e
