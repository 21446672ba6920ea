"""
System components for admitstats.
"""

from admitstats.components.config import Config, ConfigManager
