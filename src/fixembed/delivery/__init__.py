"""Outbound message delivery helpers."""
