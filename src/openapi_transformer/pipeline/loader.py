"""Import transformer modules and instantiate their factories.

This is the only place arbitrary transformer code is imported. A transformer
module exposes a factory (usually a class) named ``Transformer``, or the name
given explicitly in the specifier. The factory is called with the reference's
arguments and must return an object with a ``transform_document`` method.
"""

import importlib
import importlib.util
import logging
import sys
from collections.abc import Awaitable
from importlib.machinery import ModuleSpec, PathFinder
from pathlib import Path
from types import ModuleType
from typing import Any, Protocol, runtime_checkable

from openapi_transformer.errors import LoadError
from openapi_transformer.pipeline.resolver import (
    Resolver,
    TransformerLocation,
    rooted_module_name,
)
from openapi_transformer.references import TransformerReference

logger = logging.getLogger(__name__)

DEFAULT_FACTORY = "Transformer"


@runtime_checkable
class TransformerProtocol(Protocol):
    """What the pipeline requires of a transformer instance."""

    def transform_document(self, document: Any) -> Any | Awaitable[Any]:
        """Return the transformed document, directly or as an awaitable."""
        ...


class Loader(Protocol):
    """Anything that can turn a reference into a transformer instance."""

    async def load(self, reference: TransformerReference) -> TransformerProtocol: ...


def _exec_spec(name: str, spec: ModuleSpec) -> ModuleType:
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    if spec.loader is None:
        # Namespace package
        return module
    try:
        spec.loader.exec_module(module)
    except Exception:
        del sys.modules[name]
        raise
    return module


def _renamed_spec(name: str, found: ModuleSpec) -> ModuleSpec:
    """Build a spec for the module described by ``found`` under a different name."""
    if found.has_location and found.origin is not None:
        spec = importlib.util.spec_from_file_location(
            name, found.origin, submodule_search_locations=found.submodule_search_locations
        )
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot import {found.origin}")
        return spec
    spec = ModuleSpec(name, None, is_package=True)
    spec.submodule_search_locations = list(found.submodule_search_locations or [])
    return spec


def _import_rooted_part(
    name: str, registered_name: str, locations: list[str], root: Path
) -> ModuleType:
    module = sys.modules.get(registered_name)
    if module is not None:
        return module
    found = PathFinder.find_spec(name, locations)
    if found is None:
        raise ModuleNotFoundError(f"No module named {name!r} in {root}", name=name)
    return _exec_spec(registered_name, _renamed_spec(registered_name, found))


def _import_file(name: str, path: Path) -> ModuleType:
    module = sys.modules.get(name)
    if module is not None:
        return module
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot import {path}")
    return _exec_spec(name, spec)


def _import_rooted(name: str, root: Path) -> ModuleType:
    """
    Import a dotted module name searching only ``root`` for the top-level package.

    Modules are registered under ``rooted_module_name``, never under ``name``
    itself, so a module of the same name imported from elsewhere is not reused.
    """
    parts = name.split(".")
    registered = rooted_module_name(name, root).split(".")
    module = _import_rooted_part(parts[0], registered[0], [str(root)], root)
    for index in range(1, len(parts)):
        locations = getattr(module, "__path__", None)
        if locations is None:
            parent_name = ".".join(parts[:index])
            raise ModuleNotFoundError(f"{parent_name!r} is not a package", name=name)
        child = _import_rooted_part(
            ".".join(parts[: index + 1]), ".".join(registered[: index + 1]), list(locations), root
        )
        setattr(module, parts[index], child)
        module = child
    return module


def import_location(location: TransformerLocation) -> ModuleType:
    """
    Import the module at a resolved location.

    Modules are registered in ``sys.modules`` like any other import, so a
    module is executed at most once per process.
    """
    if location.from_file and location.path is not None:
        return _import_file(location.module_name, location.path)
    if location.search_root is not None:
        return _import_rooted(location.module_name, location.search_root)
    return importlib.import_module(location.module_name)


class TransformerLoader:
    """Resolve, import, and instantiate transformers."""

    def __init__(self, resolver: Resolver | None = None) -> None:
        self.resolver = resolver if resolver is not None else Resolver()

    async def load(self, reference: TransformerReference) -> TransformerProtocol:
        """
        Load a fresh transformer instance for ``reference``.

        Raises:
            ResolutionError: If the specifier cannot be resolved
            LoadError: If the module cannot be imported or the factory
                       does not produce a transformer
        """
        location = self.resolver.resolve(reference.specifier, reference.origin)
        return self.instantiate(reference, location)

    def instantiate(
        self, reference: TransformerReference, location: TransformerLocation
    ) -> TransformerProtocol:
        """Import ``location`` and call its factory with the reference's arguments."""
        specifier = reference.specifier
        try:
            module = import_location(location)
        except Exception as e:
            raise LoadError(specifier, f"{type(e).__name__}: {e}") from e

        name = location.attribute or DEFAULT_FACTORY
        factory = getattr(module, name, None)
        if factory is None:
            raise LoadError(specifier, f"module has no {name!r} attribute")
        if not callable(factory):
            raise LoadError(specifier, f"{name!r} is not a class or callable")

        try:
            instance = factory(*reference.arguments)
        except Exception as e:
            raise LoadError(specifier, f"{type(e).__name__}: {e}") from e

        if not callable(getattr(instance, "transform_document", None)):
            raise LoadError(
                specifier, f"{name!r} did not produce an object with transform_document()"
            )

        logger.debug(
            "Loaded transformer %s from %s", specifier, location.path or location.module_name
        )
        return instance
