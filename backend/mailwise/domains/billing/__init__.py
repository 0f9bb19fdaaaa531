"""Billing domain — applies verified payment webhooks to usage and publishes them."""
