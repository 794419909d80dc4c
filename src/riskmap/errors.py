class RiskMapError(RuntimeError):
    pass


class ConfigurationError(RiskMapError):
    """A lookup table lacks an entry the caller relies on."""


class LoadError(RiskMapError):
    """A risk or geocode source could not be fetched or parsed."""
