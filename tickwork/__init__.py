"""tickwork core package."""

from .config import Settings, settings
from .service_layer import build_controller
from .services.cancellation import CancellationSignal
from .services.lifecycle import LifecycleController
from .services.periodic_runner import PeriodicRunner
from .services.scope import ResourceScope, ScopedServiceProvider

__all__ = [
    "settings",
    "Settings",
    "build_controller",
    "CancellationSignal",
    "LifecycleController",
    "PeriodicRunner",
    "ResourceScope",
    "ScopedServiceProvider",
]
