"""Link recognition and rewriting for supported social media services."""
