"""Base classes shared by configuration and runtime models.

Kept apart from config.py so that log.py can build its sinks on
BaseConfig without importing the full settings tree.
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Closeable(Protocol):
    """Anything holding a resource released by close()."""

    def close(self) -> None:
        ...


class BaseCloseable(BaseModel):
    """Model that closes every Closeable field it owns.

    close() walks the model fields in declaration order. A failing
    child is reported on stderr and the walk continues, so one bad
    sink never leaves the others open. Usable as a context manager.
    """

    def close(self):
        for field_name in self.__class__.model_fields:
            child = getattr(self, field_name, None)
            if child is None or not isinstance(child, Closeable):
                continue
            try:
                child.close()
            except Exception as e:
                print(
                    f"Warning: error closing {field_name}: {e}",
                    file=sys.stderr,
                )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


class BaseConfig(BaseCloseable):
    """Marker base for settings loaded from YAML/env/CLI."""


class BaseState(BaseCloseable):
    """Marker base for state mutated while a run is in progress."""


__all__ = ["Closeable", "BaseCloseable", "BaseConfig", "BaseState"]
