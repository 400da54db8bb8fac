class ConfigurationError(ValueError):
    """Raised when board or level settings cannot produce a playable board."""
