"""
Utility functions and helpers for FixEmbed.

- **logger.py**: Centralized logging configuration with colored console output,
  rotating file handlers, and per-session log aggregation. Suppresses noise from
  Discord internals and networking libraries.
"""
