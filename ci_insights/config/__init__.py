from .settings import Settings, DEFAULT_REGISTRY_PATH
from .loader import load_yaml, load_registry, load_scoring_policy

__all__ = ["Settings", "DEFAULT_REGISTRY_PATH", "load_yaml", "load_registry", "load_scoring_policy"]
