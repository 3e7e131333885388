class RunstateException(Exception):
    def __init__(self, message: str | None = None):
        self.message = message
        super().__init__(message)


class RootDirectoryError(RunstateException):
    def __init__(self, root: str, reason: str | None = None):
        self.root = root
        reason_str = f": {reason}" if reason else ""
        super().__init__(f"Failed to read container root {root}{reason_str}")


class ContainerLoadError(RunstateException):
    """A single container could not produce a handle, status or state."""

    def __init__(self, container_id: str, reason: str | None = None):
        self.container_id = container_id
        self.reason = reason
        reason_str = f": {reason}" if reason else ""
        super().__init__(f"Failed to load container {container_id}{reason_str}")


class ContainerNotFound(ContainerLoadError):
    def __init__(self, container_id: str, reason: str | None = None):
        super().__init__(container_id, reason or "container does not exist")


class InvalidContainerId(ContainerLoadError):
    def __init__(self, container_id: str):
        super().__init__(container_id, "invalid container id format")


class CorruptContainerState(ContainerLoadError):
    pass


class InvalidFormatError(RunstateException):
    def __init__(self, requested_format: str | None = None):
        self.requested_format = requested_format
        super().__init__("invalid format option")


class UnknownFactoryBackend(RunstateException):
    def __init__(self, backend: str | None = None):
        self.backend = backend
        super().__init__(f"Unknown container factory backend: {backend}")
