"""Usage log domain — per-request generation records, stats and recent activity.

Completed generations reach this domain as ``GenerationCompletedEvent``s on
the event bus. The log is analytics only; quotas are enforced by the usage
domain and never read it.
"""
