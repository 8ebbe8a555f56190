"""
Index Configuration
===================
Construction parameters for the piecewise-linear oracle.

  epsilon            → max prediction error (in positions) at the leaf level.
                       Larger = fewer segments, wider search windows.
  epsilon_recursive  → same bound for the internal levels that route a key
                       to its leaf segment.
"""

from dataclasses import dataclass, replace


class IndexConfigError(ValueError):
    """Raised when an IndexConfig holds an unusable value."""
    pass


@dataclass(frozen=True)
class IndexConfig:
    epsilon: int = 64
    epsilon_recursive: int = 4

    def validate(self) -> 'IndexConfig':
        for name in ("epsilon", "epsilon_recursive"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise IndexConfigError(f"{name} must be an int, got {value!r}")
            if value < 1:
                raise IndexConfigError(f"{name} must be >= 1, got {value}")
        return self

    def with_overrides(self, **overrides) -> 'IndexConfig':
        """Return a validated copy with some fields replaced."""
        return replace(self, **overrides).validate()


DEFAULT_CONFIG = IndexConfig()
