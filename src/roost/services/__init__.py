"""Service dependency container."""

from roost.services.container import ServiceContainer, ServiceRegistration

__all__ = ["ServiceContainer", "ServiceRegistration"]
