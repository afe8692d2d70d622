"""Plain data types shared across FixEmbed components."""
