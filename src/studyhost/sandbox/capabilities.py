"""The closed capability table plugin code is evaluated against.

Plugin globals are built only from what this module grants: a curated
``__builtins__`` (no ``open``, ``eval``, ``exec``, ``compile``,
``globals``, ``input``, ``breakpoint``), the drawing primitives, the
public names of a few pure utility modules, the per-study timer functions
and logger, and the authoring kit. ``import`` statements resolve against
``CAPABILITY_MODULES`` and nothing else::

    import math                                   # allowed
    from chart import HorizontalLine, LabelPlacement
    from study import StudyBase, study_utils
    import os                                     # ImportError

The table keeps honest plugins away from host internals. It is not a
security boundary against hostile code; plugins are trusted local files.
"""
from __future__ import annotations

import builtins
import datetime
import json
import logging
import math
import statistics
from collections.abc import Mapping
from types import MappingProxyType, ModuleType
from typing import Any

from studyhost.sandbox import primitives
from studyhost.sandbox.timers import TimerScope
from studyhost.study import StudyBase, study_utils
from studyhost.validator.schema import ControlType

STUDY_LOGGER_PREFIX = "studyhost.studies"

_SAFE_BUILTIN_NAMES: tuple[str, ...] = (
    # construction
    "__build_class__", "object", "super", "property", "staticmethod", "classmethod",
    # types
    "bool", "int", "float", "complex", "str", "bytes", "list", "tuple", "dict",
    "set", "frozenset", "range", "slice", "type",
    # functions
    "abs", "all", "any", "callable", "chr", "divmod", "enumerate", "filter",
    "format", "getattr", "hasattr", "hash", "id", "isinstance", "issubclass",
    "iter", "len", "map", "max", "min", "next", "ord", "pow", "repr",
    "reversed", "round", "setattr", "sorted", "sum", "zip",
    # exceptions
    "Exception", "ArithmeticError", "AssertionError", "AttributeError",
    "IndexError", "KeyError", "LookupError", "NotImplementedError",
    "OverflowError", "RuntimeError", "StopIteration", "TypeError",
    "ValueError", "ZeroDivisionError",
    "NotImplemented", "Ellipsis",
)

SAFE_BUILTINS: Mapping[str, Any] = MappingProxyType(
    {name: getattr(builtins, name) for name in _SAFE_BUILTIN_NAMES}
)


def _module(name: str, members: Mapping[str, Any]) -> ModuleType:
    module = ModuleType(name)
    module.__dict__.update(members)
    return module


def _chart_members() -> dict[str, Any]:
    members: dict[str, Any] = {cls.__name__: cls for cls in primitives.PRIMITIVE_TYPES}
    members.update({enum.__name__: enum for enum in primitives.ENUM_TYPES})
    members["Point"] = primitives.Point
    members["NumberRange"] = primitives.NumberRange
    return members


CHART_MEMBERS: Mapping[str, Any] = MappingProxyType(_chart_members())
CHART_MODULE = _module("chart", CHART_MEMBERS)
STUDY_MODULE = _module(
    "study",
    {"StudyBase": StudyBase, "study_utils": study_utils, "ControlType": ControlType},
)


def _public_proxy(module: ModuleType) -> ModuleType:
    """Return a stand-in for ``module`` carrying only its public API.

    Names come from ``__all__`` when the module declares it, otherwise
    from its non-underscore attributes. Submodules are never copied, so
    helpers such as ``statistics.sys`` or ``json.decoder`` stay out of reach.
    """
    names = getattr(module, "__all__", None)
    if names is None:
        names = [name for name in vars(module) if not name.startswith("_")]
    members = {
        name: getattr(module, name)
        for name in names
        if not isinstance(getattr(module, name, None), ModuleType)
    }
    return _module(module.__name__, members)


UTILITY_MODULES: Mapping[str, ModuleType] = MappingProxyType(
    {module.__name__: _public_proxy(module) for module in (math, statistics, json, datetime)}
)

CAPABILITY_MODULES: Mapping[str, ModuleType] = MappingProxyType(
    {"chart": CHART_MODULE, "study": STUDY_MODULE, **UTILITY_MODULES}
)


def _capability_import(
    name: str,
    globals: Mapping[str, Any] | None = None,  # noqa: A002
    locals: Mapping[str, Any] | None = None,  # noqa: A002
    fromlist: tuple[str, ...] | None = (),
    level: int = 0,
) -> ModuleType:
    if level != 0:
        raise ImportError("relative imports are not available to studies")
    try:
        return CAPABILITY_MODULES[name]
    except KeyError:
        raise ImportError(
            f"module {name!r} is not available to studies "
            f"(available: {', '.join(sorted(CAPABILITY_MODULES))})"
        ) from None


def build_namespace(
    study_id: str,
    timers: TimerScope,
    extra: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Return a fresh globals mapping for evaluating one plugin.

    Parameters
    ----------
    study_id:
        Id of the plugin; names its logger and module.
    timers:
        The plugin's timer scope.
    extra:
        Host-supplied bindings layered on top of the standard table.

    Returns
    -------
    dict[str, Any]
        Globals with ``__builtins__`` restricted to the safe table.
    """
    sandbox_builtins = dict(SAFE_BUILTINS)
    sandbox_builtins["__import__"] = _capability_import

    namespace: dict[str, Any] = {
        "__builtins__": sandbox_builtins,
        "__name__": f"{STUDY_LOGGER_PREFIX}.{study_id}",
        "__doc__": None,
        "logger": logging.getLogger(f"{STUDY_LOGGER_PREFIX}.{study_id}"),
        "set_timeout": timers.set_timeout,
        "clear_timeout": timers.clear_timeout,
        "set_interval": timers.set_interval,
        "clear_interval": timers.clear_interval,
        **UTILITY_MODULES,
        "study_utils": study_utils,
        "StudyBase": StudyBase,
        "ControlType": ControlType,
    }
    namespace.update(CHART_MEMBERS)
    if extra:
        namespace.update(extra)
    return namespace
