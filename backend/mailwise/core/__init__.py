"""Core infrastructure shared by all domains."""
