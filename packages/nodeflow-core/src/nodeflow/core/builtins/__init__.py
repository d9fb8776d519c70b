"""Built-in steps and sinks, registered on import."""

from nodeflow.core.builtins import sinks, steps  # noqa: F401


def register() -> None:
    """No-op hook: importing this package registers the built-ins."""
    return None
