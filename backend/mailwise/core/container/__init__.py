"""Process-wide wiring.

``create_container(settings)`` builds a Container; ``initialize_container``
stores one as the module-level ``container`` at process start.

    from mailwise.core.config import settings
    from mailwise.core.container import initialize_container

    initialize_container(settings)

    from mailwise.core import container as wiring
    summary = await wiring.container.usage_tracker.get_usage_summary(...)

Tests skip the global and build a Container (or the collaborators
themselves) from fakes.
"""

from typing import TYPE_CHECKING, Optional

from mailwise.core.container.container import Container
from mailwise.core.container.factory import create_container

if TYPE_CHECKING:
    from mailwise.core.config import Settings

__all__ = [
    "Container",
    "container",
    "create_container",
    "initialize_container",
    "reset_container",
]

container: Optional[Container] = None


def initialize_container(settings: "Settings") -> Container:
    """Build the global container from *settings* and return it.

    Raises:
        RuntimeError: a container was already initialized in this process.
    """
    global container

    if container is not None:
        raise RuntimeError("Container already initialized; call initialize_container() once")

    container = create_container(settings)
    return container


def reset_container() -> None:
    """Drop the global container so tests can initialize a fresh one."""
    global container
    container = None
