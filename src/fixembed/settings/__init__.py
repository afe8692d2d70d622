"""Channel activation and guild settings storage."""
