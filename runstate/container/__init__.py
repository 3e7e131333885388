from .base import BaseContainer, BaseContainerFactory
from .factory import ContainerFactoryRegistry
from .models import BaseState, ContainerConfig, ContainerStatus, FactoryBackend, RuntimeState
from .state_dir import StateDirContainer, StateDirContainerFactory

__all__ = [
    "BaseContainer",
    "BaseContainerFactory",
    "BaseState",
    "ContainerConfig",
    "ContainerFactoryRegistry",
    "ContainerStatus",
    "FactoryBackend",
    "RuntimeState",
    "StateDirContainer",
    "StateDirContainerFactory",
]
