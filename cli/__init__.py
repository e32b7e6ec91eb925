"""CLI package for generating and inspecting the sensor dataset."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# The Typer application lives in ``cli.app``; the package root does not
# re-export it so that ``cli.app`` keeps resolving to the module for patching.

__all__ = []
