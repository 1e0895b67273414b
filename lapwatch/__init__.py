"""Top-level package for the lapwatch multi-stopwatch engine."""

from importlib.metadata import version

__all__ = ["__version__"]


def __getattr__(name: str) -> str:
    if name == "__version__":
        try:
            return version("lapwatch")
        except Exception:  # pragma: no cover - fallback when pkg metadata missing
            return "0.1.0"
    raise AttributeError(name)
