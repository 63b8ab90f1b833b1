"""Conversion-plugin catalogue providers."""

from src.providers.plugins.http_plugin_source import HttpPluginSource, StaticPluginSource

__all__ = ["HttpPluginSource", "StaticPluginSource"]
