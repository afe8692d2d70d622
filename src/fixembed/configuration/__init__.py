"""
Configuration management for FixEmbed.

- **app_configuration.py**: YAML configuration loader for global settings such as
  the database location, rate limit window, durable write retry policy and
  presence rotation. Falls back to defaults on missing or malformed files.
"""
