"""
FixEmbed - Discord bot that fixes social media embeds

FixEmbed watches guild text channels for links to Twitter/X, Instagram, Reddit,
Pixiv, Threads and Bluesky and reposts them through embed-friendly mirrors.

Core Components:

- **Pattern Engine**: Recognizes supported links and rewrites their host to the
  matching fix service, producing a display label per link
- **Config Store**: In-memory channel activation and guild settings caches,
  replicated to SQLite with bounded retry on busy databases
- **Rate Limiter**: Process-wide sliding window (5 sends per second) in front of
  every outbound message
- **Message Processing**: Per-message pipeline tying the three together and
  deleting or embed-suppressing the original message

Usage:
    from fixembed.main import main
    main()
"""

__version__ = "1.1.7"
