"""
Configuration management for Rulecord.

- **app_configuration.py**: YAML configuration loader for global settings
  (database path, log level, moderation defaults, notifier timeout). Falls
  back to built-in defaults on a missing or malformed file.

Per-guild configuration (threshold, moderator channel, monitored channels)
lives in the database; see ``rulecord.repositories.guild_config_repo``.
"""
