"""Custom exceptions for settlement generation."""


class SettlementError(Exception):
    """Base exception for settlement errors."""

    pass


class ConfigurationError(SettlementError):
    """Raised when a generation config is internally inconsistent."""

    pass


class OutOfBoundsError(SettlementError):
    """Raised when a coordinate lies outside the tile grid."""

    pass


class PersistenceNotFoundError(SettlementError):
    """Raised when no saved world exists at the requested path."""

    pass


class PersistenceCorruptError(SettlementError):
    """Raised when a saved world cannot be decoded or is inconsistent."""

    pass


class GenerationIncomplete(UserWarning):
    """Warned when the placement loop stops before spending its budget."""

    pass
