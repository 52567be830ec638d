"""Configuration for whopbot."""

from whopbot.config.schema import Config, ScheduledAnnouncement, split_id_list
from whopbot.config.loader import load_config, require_credentials

__all__ = [
    "Config",
    "ScheduledAnnouncement",
    "split_id_list",
    "load_config",
    "require_credentials",
]
