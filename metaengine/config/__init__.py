"""Settings loading."""

from metaengine.config.loader import load_settings

__all__ = ["load_settings"]
