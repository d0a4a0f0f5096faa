"""
Application wiring for the StudyCore client.

The container in ``dependencies`` creates the concrete implementations
behind each module interface.
"""

from .dependencies import ServiceContainer, get_container, reset_container

__all__ = ["ServiceContainer", "get_container", "reset_container"]
