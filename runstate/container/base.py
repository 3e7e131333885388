from abc import ABC, abstractmethod

from .models import ContainerStatus, RuntimeState


class BaseContainer(ABC):
    """Handle on one container's persisted state."""

    @property
    @abstractmethod
    def id(self) -> str:
        """Return the container identifier."""

    @abstractmethod
    def status(self) -> ContainerStatus:
        """Derive the current lifecycle status."""

    @abstractmethod
    def state(self) -> RuntimeState:
        """Return the persisted runtime state."""


class BaseContainerFactory(ABC):
    """Materializes container handles from persisted state."""

    @property
    @abstractmethod
    def root(self) -> str:
        """Return the absolute state root this factory loads from."""

    @abstractmethod
    def load(self, container_id: str) -> BaseContainer:
        """Load the container with the given identifier.

        Raises:
            ContainerLoadError: If the container's state is missing or unreadable.
        """
