"""
Loading models from files.

Each supported format provides a loader returning an object
that implements :class:`BuildModel<trimodel.model.BuildModel>`. The format
of a file is usually inferred from its extension.

Currently supported formats are:

- ``"wavefront"``: Wavefront ``.obj`` files, with their ``.mtl``
  material libraries, see :mod:`trimodel.load.wavefront`.
"""

__all__ = (
    "EXTENSIONS",
    "SUPPORTED_FORMATS",
    "get_format",
    "load_file",
    "load_model",
    "register_format",
    "registry",
    "wavefront",
)

from . import wavefront
from ._dispatch import (
    EXTENSIONS,
    SUPPORTED_FORMATS,
    get_format,
    load_file,
    load_model,
    register_format,
    registry,
)
