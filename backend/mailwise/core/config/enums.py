"""Enumerated configuration values.

String-valued so they round-trip through environment variables unchanged.
"""

from enum import Enum


class UsageStoreBackendType(str, Enum):
    """Where usage counters live.

    ``postgres`` is the durable store; ``memory`` keeps counters in the
    process and loses them on restart (local runs and tests).
    """

    POSTGRES = "postgres"
    MEMORY = "memory"


class Environment(str, Enum):
    """Deployment stage the process is running in."""

    LOCAL = "local"
    TEST = "test"
    DEV = "dev"
    PRD = "prd"
