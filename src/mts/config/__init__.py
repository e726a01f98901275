"""Configuration for MTS."""

from mts.config.loader import load_config, load_lookup
from mts.config.schema import MtsConfig

__all__ = ["MtsConfig", "load_config", "load_lookup"]
