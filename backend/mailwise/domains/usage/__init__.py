"""Usage domain — monthly per-tier quotas for metered model requests.

The container holds the singleton UsageTracker (see core/container). Request
handlers call consume_usage before doing billable work and rollback_usage if
that work fails. Paid invoices reset counters through the billing webhook
processor.
"""
