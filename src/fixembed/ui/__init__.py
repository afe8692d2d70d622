"""
User interface components for FixEmbed.

- **embeds.py**: Embed builders shared by commands (footer branding, about, owner).
- **settings_ui.py**: Interactive settings panel with select menus and toggle
  buttons that call into the config store.
"""
