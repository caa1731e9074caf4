"""
Configuration Loader.

Reads every enabled entry from the rule configuration store into a
RuleConfig table. Called once per invocation; there is no cache, so rule
behaviour always reflects the store as of invocation time.
"""

import structlog

from anticheat.errors import ConfigUnavailable
from anticheat.models.rule_config import RuleConfig
from anticheat.storage.base import ConfigStore

logger = structlog.get_logger()


class ConfigurationLoader:
    """
    Loads the enabled rule configuration.

    Attributes:
        store: Rule configuration store
    """

    def __init__(self, store: ConfigStore):
        self.store = store

    def load(self) -> RuleConfig:
        """
        Load all enabled rule configuration entries.

        Returns:
            RuleConfig mapping key -> value

        Raises:
            ConfigUnavailable: If the store cannot be read
        """
        try:
            entries = self.store.list_enabled_rules()
        except Exception as e:
            logger.error("config_load_failed", error=str(e))
            raise ConfigUnavailable(f"Rule configuration unavailable: {e}") from e

        config = RuleConfig({entry.key: entry.value for entry in entries})
        logger.debug("config_loaded", keys=sorted(config))
        return config
