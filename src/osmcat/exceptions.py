class OsmCatError(Exception):
    """Base exception for all osmcat errors."""


class ConfigError(OsmCatError):
    """Raised for invalid options or config values, before any file is opened."""


class UnsupportedEntityError(OsmCatError):
    """Raised when the writer is handed an entity kind it cannot encode."""
