import os

from runstate.exceptions import UnknownFactoryBackend

from .base import BaseContainerFactory
from .models import FactoryBackend
from .state_dir import StateDirContainerFactory


class ContainerFactoryRegistry:
    """Selects the container factory used to load persisted state.

    The registry supports:
    1. Explicit factory injection via set_factory()
    2. Backend selection by name
    3. Configuration via environment variable RUNSTATE_FACTORY_BACKEND
    """

    _factory: BaseContainerFactory | None = None

    @classmethod
    def set_factory(cls, factory: BaseContainerFactory) -> None:
        """Explicitly set the factory to use, regardless of root or backend."""
        cls._factory = factory

    @classmethod
    def get_factory(cls, root: str | os.PathLike[str], backend: str | None = None) -> BaseContainerFactory:
        """Get a factory loading containers from the given root.

        Args:
            root: The state root directory
            backend: Backend name, defaults to the RUNSTATE_FACTORY_BACKEND environment
                variable and then to the state directory backend

        Raises:
            UnknownFactoryBackend: If the backend name is not supported
        """
        if cls._factory is not None:
            return cls._factory

        backend_name = (backend or os.environ.get("RUNSTATE_FACTORY_BACKEND", "") or FactoryBackend.STATEDIR).lower()
        try:
            backend_type = FactoryBackend(backend_name)
        except ValueError as e:
            raise UnknownFactoryBackend(backend_name) from e
        return cls._create_factory(backend_type, root)

    @classmethod
    def reset(cls) -> None:
        """Reset the registry state.

        This clears an injected factory, useful for testing.
        """
        cls._factory = None

    @classmethod
    def _create_factory(cls, backend: FactoryBackend, root: str | os.PathLike[str]) -> BaseContainerFactory:
        if backend == FactoryBackend.STATEDIR:
            return StateDirContainerFactory(root)
        raise UnknownFactoryBackend(str(backend))
