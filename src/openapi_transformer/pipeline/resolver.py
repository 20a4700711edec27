"""Resolve transformer specifiers to importable locations.

A specifier is one of:

- a ``file:`` URL (``file:///opt/transformers/strip.py``)
- a file system path (``./strip.py``, ``../lib/strip``, ``/opt/strip.py``)
- a dotted module name (``openapi_transformer.transformers.nullable``)

Any of them may name the factory attribute explicitly, using entry-point
syntax for paths and module names (``pkg.mod:Factory``) or the fragment for
URLs (``file:///opt/strip.py#Factory``).

Relative paths and module names are looked up from an origin directory: the
directory of the configuration file that declared the transformer, or the
working directory for transformers given on the command line. Module names
not found there fall back to the regular ``sys.path`` import machinery so
that transformers can be installed as ordinary packages.
"""

import hashlib
import importlib.util
import logging
import os
import re
from dataclasses import dataclass
from importlib.machinery import ModuleSpec, PathFinder
from pathlib import Path
from urllib.parse import urlsplit
from urllib.request import url2pathname

from openapi_transformer.errors import ResolutionError

logger = logging.getLogger(__name__)

_NON_IDENTIFIER = re.compile(r"\W")


@dataclass(frozen=True)
class TransformerLocation:
    """
    Where a transformer module lives and how to import it.

    Attributes:
        module_name: Name the module is imported under (registered under
                     ``rooted_module_name`` when ``search_root`` is set)
        path: Source file of the module, when it has one
        search_root: Directory the import is rooted at, or None for sys.path
        attribute: Explicit factory attribute, or None for the default
        from_file: True when the module is loaded directly from ``path``
                   rather than through the import machinery
    """

    module_name: str
    path: Path | None = None
    search_root: Path | None = None
    attribute: str | None = None
    from_file: bool = False


def _split_attribute(specifier: str) -> tuple[str, str | None]:
    target, sep, attribute = specifier.rpartition(":")
    if sep and target and attribute.isidentifier():
        return target, attribute
    return specifier, None


def _is_url(specifier: str) -> bool:
    parts = urlsplit(specifier)
    # Single-letter schemes are Windows drive letters, not URLs
    if len(parts.scheme) < 2:
        return False
    return bool(parts.netloc) or specifier[len(parts.scheme) + 1 :].startswith("/")


def _is_path_like(target: str) -> bool:
    return (
        os.path.isabs(target)
        or target.startswith(".")
        or "/" in target
        or os.sep in target
        or target.endswith(".py")
    )


def file_module_name(path: Path) -> str:
    """
    Return the module name a transformer file is imported under.

    The name is derived from the absolute path so the same file always maps
    to the same module, and different files never collide.
    """
    stem = path.parent.name if path.name == "__init__.py" else path.stem
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]
    return f"_openapi_transformer_{_NON_IDENTIFIER.sub('_', stem)}_{digest}"


def rooted_module_name(module_name: str, root: Path) -> str:
    """
    Return the name a module found under ``root`` is registered under.

    The top-level package is renamed after its location, so modules of the
    same name under different roots, or on sys.path, never share an entry in
    ``sys.modules``. Submodule names are kept.
    """
    top, dot, rest = module_name.partition(".")
    return file_module_name(root.resolve() / top) + dot + rest


def _find_file(path: Path) -> Path | None:
    """Find the module file for ``path`` the way the import system would."""
    candidates = [path, path / "__init__.py"]
    if path.name:
        candidates.insert(1, path.with_name(path.name + ".py"))
    for candidate in candidates:
        if candidate.is_file():
            return candidate.resolve()
    return None


def _find_rooted_spec(module_name: str, root: Path) -> ModuleSpec | None:
    """Find ``module_name`` as if ``root`` were the only entry on sys.path."""
    parts = module_name.split(".")
    locations: list[str] | None = [str(root)]
    spec = None
    for index in range(len(parts)):
        if locations is None:
            # Parent is a plain module, not a package
            return None
        spec = PathFinder.find_spec(".".join(parts[: index + 1]), locations)
        if spec is None:
            return None
        search = spec.submodule_search_locations
        locations = list(search) if search is not None else None
    if spec is None or spec.loader is None or not spec.has_location:
        # Namespace packages have nothing to instantiate
        return None
    return spec


class Resolver:
    """Resolve specifiers relative to an origin or an explicit working directory."""

    def __init__(self, cwd: Path | None = None) -> None:
        self.cwd = cwd

    def _base(self, origin: Path | None) -> Path:
        cwd = self.cwd if self.cwd is not None else Path.cwd()
        if origin is None:
            return cwd
        return origin if origin.is_absolute() else cwd / origin

    def resolve(self, specifier: str, origin: Path | None = None) -> TransformerLocation:
        """
        Resolve a transformer specifier to an importable location.

        Args:
            specifier: Module name, file path or file: URL
            origin: Directory to resolve relative specifiers from
                    (None for the working directory)

        Returns:
            The TransformerLocation to import

        Raises:
            ResolutionError: If no module can be found for the specifier
        """
        if _is_url(specifier):
            location = self._resolve_url(specifier, origin)
        else:
            target, attribute = _split_attribute(specifier)
            if _is_path_like(target):
                location = self._resolve_path(specifier, Path(target), attribute, origin)
            else:
                location = self._resolve_module(specifier, target, attribute, origin)

        logger.debug("Resolved transformer %s to %s", specifier, location)
        return location

    def _resolve_url(self, specifier: str, origin: Path | None) -> TransformerLocation:
        parts = urlsplit(specifier)
        if parts.scheme != "file":
            raise ResolutionError(specifier, origin, f"unsupported URL scheme {parts.scheme!r}")
        attribute = parts.fragment or None
        if attribute is not None and not attribute.isidentifier():
            raise ResolutionError(specifier, origin, f"invalid factory name {attribute!r}")
        return self._resolve_path(specifier, Path(url2pathname(parts.path)), attribute, origin)

    def _resolve_path(
        self, specifier: str, path: Path, attribute: str | None, origin: Path | None
    ) -> TransformerLocation:
        if not path.is_absolute():
            path = self._base(origin) / path
        found = _find_file(path)
        if found is None:
            raise ResolutionError(specifier, origin, f"no module at {path}")
        return TransformerLocation(
            module_name=file_module_name(found), path=found, attribute=attribute, from_file=True
        )

    def _resolve_module(
        self, specifier: str, module_name: str, attribute: str | None, origin: Path | None
    ) -> TransformerLocation:
        if not all(part.isidentifier() for part in module_name.split(".")):
            raise ResolutionError(specifier, origin, "not a valid module name")

        root = self._base(origin)
        spec = _find_rooted_spec(module_name, root)
        if spec is not None:
            return TransformerLocation(
                module_name=module_name,
                path=Path(spec.origin),
                search_root=root,
                attribute=attribute,
            )

        try:
            spec = importlib.util.find_spec(module_name)
        except Exception as e:
            # find_spec imports parent packages, which may fail in any way
            raise ResolutionError(specifier, origin, str(e)) from e
        if spec is None:
            raise ResolutionError(specifier, origin, f"no module named {module_name!r}")

        return TransformerLocation(
            module_name=module_name,
            path=Path(spec.origin) if spec.has_location and spec.origin else None,
            attribute=attribute,
        )


def resolve(specifier: str, origin: Path | None = None) -> TransformerLocation:
    """Resolve ``specifier`` from ``origin`` or the current working directory."""
    return Resolver().resolve(specifier, origin)
