"""Custom exceptions for terrain generation."""


class TerrainError(Exception):
    """Base exception for terrain errors."""

    pass


class ConfigurationError(TerrainError, ValueError):
    """Raised when generation parameters make a stage meaningless."""

    pass


class InvalidNoiseParameters(ConfigurationError):
    """Raised when a noise function gets a non-positive frequency or radius."""

    pass


class InvalidGridError(ConfigurationError):
    """Raised when a grid has the wrong shape or resolution."""

    pass


class EmptyBiomeCollectionError(ConfigurationError):
    """Raised when classification is requested without any biomes."""

    pass


class GenerationInProgressError(TerrainError):
    """Raised when querying or regenerating while a generation runs."""

    pass


class TerrainNotGeneratedError(TerrainError):
    """Raised when querying before any terrain was generated."""

    pass
