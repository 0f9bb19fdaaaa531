"""Mailwise backend: email assistant API with per-user usage metering."""
