"""Service layer orchestrating the message pipeline."""
