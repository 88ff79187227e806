"""
backend/registry.py

Aggregator plugin discovery.

Every BaseAggregator subclass defined in a module of the aggregation
package is registered under its `name`. Hosts look plugins up by that name:

    from deltasum.backend.registry import create
    agg = create("dbcounter", config)
"""

from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil

from .aggregation.base import BaseAggregator
from .config import AggregatorConfig

logger = logging.getLogger(__name__)

_registry: dict[str, type[BaseAggregator]] = {}
_discovered = False


def register(cls: type[BaseAggregator]) -> type[BaseAggregator]:
    """Register an aggregator class under its `name`. Usable as a decorator."""
    if not cls.name:
        raise ValueError(f"{cls.__name__} has no name")
    existing = _registry.get(cls.name)
    if existing is not None and existing is not cls:
        raise ValueError(f"aggregator {cls.name!r} already registered by {existing.__name__}")
    _registry[cls.name] = cls
    return cls


def available() -> list[str]:
    _discover()
    return sorted(_registry)


def create(name: str, config: AggregatorConfig | None = None) -> BaseAggregator:
    """Instantiate the aggregator registered as `name`. Raises KeyError if unknown."""
    _discover()
    try:
        cls = _registry[name]
    except KeyError:
        raise KeyError(f"unknown aggregator {name!r}; available: {sorted(_registry)}") from None
    return cls(config)


def _discover() -> None:
    global _discovered
    if _discovered:
        return
    import deltasum.backend.aggregation as agg_pkg
    for _, module_name, _ in pkgutil.iter_modules(agg_pkg.__path__):
        if module_name == "base":
            continue
        try:
            module = importlib.import_module(f"deltasum.backend.aggregation.{module_name}")
        except ImportError as exc:
            logger.error("Failed to import aggregator module %r: %s", module_name, exc)
            continue
        for _, obj in inspect.getmembers(module, inspect.isclass):
            if (
                issubclass(obj, BaseAggregator)
                and obj is not BaseAggregator
                and obj.__module__ == module.__name__
            ):
                register(obj)
    _discovered = True
    logger.debug("Aggregators available: %s", sorted(_registry))
