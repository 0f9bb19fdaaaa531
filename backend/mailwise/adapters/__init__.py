"""Adapters: concrete implementations of core and domain protocols."""
