"""Domain-specific errors for z2madapter."""


class AdapterError(Exception):
    """Base error for z2madapter."""


class CatalogValidationError(AdapterError):
    """Raised when a catalog file does not conform to schema or semantics."""


class CatalogLoadError(AdapterError):
    """Raised when reading catalog sources fails."""


class ConfigError(AdapterError):
    """Raised when the adapter configuration is unreadable or invalid."""


class UnknownTransformError(AdapterError):
    """Raised when a named value transform is not registered."""


class MalformedMessageError(AdapterError):
    """Raised when a bus payload is not JSON or has an unexpected shape."""


class PropertyValidationError(AdapterError):
    """Raised when a host-side property write is rejected by base validation."""


class TransportError(AdapterError):
    """Base transport error."""


class TransportConnectError(TransportError):
    """Raised on broker connect failures."""


class TransportPublishError(TransportError):
    """Raised when publishing a message fails."""


class TransportSubscribeError(TransportError):
    """Raised when a topic subscription fails."""
