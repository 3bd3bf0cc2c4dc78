import logging
import types
from collections.abc import Callable
from pathlib import Path
from typing import Any

import numpy as np

from trimodel.errors import UnknownModelFormatError
from trimodel.geometry import Vector
from trimodel.model import BuildModel, Model

logger = logging.getLogger(__name__)

Loader = Callable[[Path], BuildModel]

# Immutables

SUPPORTED_FORMATS = ("wavefront",)
"""The list of supported formats."""

EXTENSIONS = types.MappingProxyType({".obj": "wavefront"})
"""The mapping from (lowercase) file extensions to format names."""

# Mutables

_registry: dict[str, Loader] = {}

registry = types.MappingProxyType(_registry)
"""The read-only mapping from format names to their registered loader."""


def get_format(path: str | Path, format: str | None = None) -> str:  # noqa: A002
    """
    Return the name of the format of a model file.

    Args:
        path: The path to the file.
        format: The name of the format, or :data:`None` to infer it
            from the extension of ``path``.

            The name is case insensitive.

    Returns:
        The name of the format.

    Raises:
        UnknownModelFormatError: If the format is not supported,
            or cannot be inferred.
    """
    if format is None:
        suffix = Path(path).suffix.lower()
        try:
            return EXTENSIONS[suffix]
        except KeyError:
            reason = (
                f"cannot infer the format of '{path}' from its extension. "
                f"Known extensions are: {', '.join(EXTENSIONS)}."
            )
            raise UnknownModelFormatError(reason) from None

    format = format.lower()  # noqa: A001

    if format not in SUPPORTED_FORMATS:
        reason = (
            f"the format '{format}' is not supported. "
            f"We currently support: {', '.join(SUPPORTED_FORMATS)}."
        )
        raise UnknownModelFormatError(reason)

    return format


def register_format(format: str) -> Callable[[Loader], Loader]:  # noqa: A002
    """
    Return a decorator registering the loader of a format.

    Args:
        format: The name of the format.

    Returns:
        A wrapper to be put before the format-specific loader,
        a callable taking a path and returning a :class:`BuildModel<trimodel.model.BuildModel>`.

    Raises:
        ValueError: If the format is not supported.
    """
    if format not in SUPPORTED_FORMATS:
        msg = (
            f"Unsupported format '{format}', "
            f"allowed values are: {', '.join(SUPPORTED_FORMATS)}."
        )
        raise ValueError(msg)

    def wrapper(loader: Loader) -> Loader:
        _registry[format] = loader
        return loader

    return wrapper


def load_file(path: str | Path, *, format: str | None = None) -> BuildModel:  # noqa: A002
    """
    Load a model file with the loader of its format.

    Args:
        path: The path to the file.
        format: The name of the format, see :func:`get_format`.

    Returns:
        The loaded file, from which models can be built.

    Raises:
        UnknownModelFormatError: If the format is not supported.
        NotImplementedError: If no loader is registered for the format.
        OSError: If the file cannot be read.
    """
    name = get_format(path, format)

    try:
        loader = _registry[name]
    except KeyError:
        msg = f"No loader implementation for '{name}'"
        raise NotImplementedError(msg) from None

    logger.debug("Loading '%s' with the '%s' loader", path, name)
    return loader(Path(path))


def load_model(
    path: str | Path,
    *,
    format: str | None = None,  # noqa: A002
    vertex_type: Any = Vector,
    index_type: Any = np.uint32,
) -> Model[Any]:
    """
    Load a model file and build a model for the whole file.

    Args:
        path: The path to the file.
        format: The name of the format, see :func:`get_format`.
        vertex_type: The vertex type, see :meth:`Model.new<trimodel.model.Model.new>`.
        index_type: The index type, see :meth:`Model.new<trimodel.model.Model.new>`.

    Returns:
        The model.

    Examples:
        The following example loads a cube from a Wavefront file.

        >>> import numpy as np
        >>> from trimodel.load import load_model
        >>>
        >>> model = load_model("cube.obj", index_type=np.uint16)  # doctest: +SKIP
        >>> model.mesh  # doctest: +SKIP
        TriangularMesh(vertex_count=24, index_count=36)
    """
    return Model.new(
        load_file(path, format=format), vertex_type=vertex_type, index_type=index_type
    )
