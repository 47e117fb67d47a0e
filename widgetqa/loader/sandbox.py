"""Evaluation sandbox for suite description files.

Data, widget and feature files are plain Python evaluated against a fixed
namespace: the ``Widget`` and ``Feature`` constructors, the ``driver``
session, the shared ``widgets`` mapping and ``features`` list, a ``log``
function, and a reduced set of builtins. Only a handful of standard library
modules can be imported, and files get a read-only view of their public,
non-module attributes rather than the modules themselves. Dunder and frame
attributes are rejected before a file runs.
"""

from __future__ import annotations

import ast
import builtins
import importlib
import inspect
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable

from widgetqa.driver.session import DriverSession
from widgetqa.engine.feature import Feature
from widgetqa.engine.widget import Widget
from widgetqa.errors import LoadError

logger = logging.getLogger(__name__)

RESERVED_NAMES = ("Widget", "Feature", "driver", "widgets", "features", "log")

SAFE_BUILTINS = (
    "abs", "all", "any", "ascii", "bin", "bool", "bytes", "callable", "chr",
    "classmethod", "dict", "divmod", "enumerate", "filter", "float", "format",
    "frozenset", "hash", "hex", "int", "isinstance",
    "issubclass", "iter", "len", "list", "map", "max", "min", "next", "object",
    "oct", "ord", "pow", "property", "range", "repr", "reversed", "round", "set",
    "slice", "sorted", "staticmethod", "str", "sum", "super", "tuple", "zip",
    "__build_class__",
    # exceptions user code may raise or catch
    "ArithmeticError", "AssertionError", "AttributeError", "Exception",
    "IndexError", "KeyError", "LookupError", "NotImplementedError",
    "RuntimeError", "StopIteration", "TypeError", "ValueError",
    "ZeroDivisionError",
)

# module name -> exposed attributes (None: every public, non-module attribute)
ALLOWED_MODULES: dict[str, tuple[str, ...] | None] = {
    "asyncio": ("sleep",),
    "datetime": None,
    "functools": None,
    "itertools": None,
    "json": None,
    "math": None,
    "random": None,
    "re": None,
    "string": ("ascii_letters", "ascii_lowercase", "ascii_uppercase", "capwords",
               "digits", "hexdigits", "octdigits", "printable", "punctuation",
               "whitespace", "Template"),
    "time": None,
}

# reach frames, code objects or attribute lookups by string
INSPECT_ATTRIBUTES = frozenset({
    "format", "format_map",
    "f_back", "f_builtins", "f_code", "f_globals", "f_locals", "f_trace",
    "gi_code", "gi_frame", "gi_yieldfrom",
    "cr_await", "cr_code", "cr_frame",
    "ag_await", "ag_code", "ag_frame",
    "tb_frame", "tb_next",
})


def is_blocked_attribute(name: str) -> bool:
    return name.startswith("__") or name in INSPECT_ATTRIBUTES


class ModuleView:
    """Read-only stand-in for a module imported by a suite file."""

    __slots__ = ("_name", "_attrs")

    def __init__(self, module: Any, names: tuple[str, ...] | None = None):
        if names is None:
            names = tuple(n for n in dir(module) if not n.startswith("_"))
        attrs = {}
        for name in names:
            value = getattr(module, name)
            if not inspect.ismodule(value):
                attrs[name] = value
        object.__setattr__(self, "_name", module.__name__)
        object.__setattr__(self, "_attrs", MappingProxyType(attrs))

    def __getattr__(self, name: str) -> Any:
        try:
            return self._attrs[name]
        except KeyError:
            raise AttributeError(
                f"'{self._name}.{name}' is not available in suite files"
            ) from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"'{self._name}' is read-only in suite files")

    def __dir__(self) -> list[str]:
        return sorted(self._attrs)

    def __repr__(self) -> str:
        return f"<module view '{self._name}'>"


_module_views: dict[str, ModuleView] = {}


def _guarded_import(name, globals=None, locals=None, fromlist=(), level=0):
    if level != 0 or name not in ALLOWED_MODULES:
        raise ImportError(f"Importing '{name}' is not allowed in suite files")
    if name not in _module_views:
        _module_views[name] = ModuleView(importlib.import_module(name), ALLOWED_MODULES[name])
    return _module_views[name]


def _guarded_getattr(obj, name, *default):
    if is_blocked_attribute(name):
        raise AttributeError(f"'{name}' is not accessible in suite files")
    return getattr(obj, name, *default)


def _guarded_hasattr(obj, name):
    if is_blocked_attribute(name):
        raise AttributeError(f"'{name}' is not accessible in suite files")
    return hasattr(obj, name)


def restricted_builtins() -> dict[str, Any]:
    allowed = {name: getattr(builtins, name) for name in SAFE_BUILTINS}
    allowed["__import__"] = _guarded_import
    allowed["getattr"] = _guarded_getattr
    allowed["hasattr"] = _guarded_hasattr
    return allowed


def check_source(tree: ast.AST, filename: str | Path) -> None:
    """Reject dunder names and frame-reaching attributes in a parsed suite file."""
    for node in ast.walk(tree):
        if isinstance(node, ast.Attribute):
            names = [node.attr]
        elif isinstance(node, ast.Name):
            names = [node.id] if node.id.startswith("__") else []
        elif isinstance(node, ast.MatchClass):
            names = list(node.kwd_attrs)
        elif isinstance(node, ast.alias):
            names = [node.name.split(".")[-1]]
        else:
            continue
        for name in names:
            if is_blocked_attribute(name):
                raise LoadError(
                    f"'{name}' is not accessible in suite files (line {getattr(node, 'lineno', '?')})",
                    path=filename,
                )


class Sandbox:
    """Shared namespace that suite files are evaluated in."""

    def __init__(self, driver: DriverSession, log: Callable[..., None]):
        self.widgets: dict[str, Widget] = {}
        self.features: list[Feature] = []
        self.namespace: dict[str, Any] = {
            "__builtins__": restricted_builtins(),
            "__name__": "widgetqa.suite",
            "Widget": Widget,
            "Feature": Feature,
            "driver": driver,
            "widgets": self.widgets,
            "features": self.features,
            "log": log,
        }
        self._reserved = {name: self.namespace[name] for name in RESERVED_NAMES}

    def execute(self, source: str, filename: str | Path, shared: bool = True) -> dict[str, Any]:
        """Run ``source`` and return the namespace it ran in.

        With ``shared``, top-level definitions land in the shared namespace
        and are visible to every file evaluated afterwards. Otherwise the
        file runs in a copy, and nothing it defines leaks out.
        """
        tree = ast.parse(source, str(filename))
        check_source(tree, filename)
        code = compile(tree, str(filename), "exec")
        namespace = self.namespace if shared else dict(self.namespace)
        exec(code, namespace)
        if shared:
            self.check_reserved(filename)
        return namespace

    def check_reserved(self, filename: str | Path) -> None:
        for name, value in self._reserved.items():
            if self.namespace.get(name) is not value:
                self.namespace[name] = value
                raise LoadError(f"'{name}' is a reserved name and cannot be redefined", path=filename)

    def publish(self, name: str, value: Any) -> None:
        """Make ``value`` visible as ``name`` to files evaluated afterwards."""
        if name in self._reserved:
            raise LoadError(f"'{name}' is a reserved name")
        self.namespace[name] = value

    def register_widget(self, widget: Widget) -> None:
        if widget.name in self.widgets:
            raise LoadError(f"Widget '{widget.name}' is already loaded")
        self.widgets[widget.name] = widget
        self.publish(widget.name, widget)

    @staticmethod
    def defined_functions(namespace: dict[str, Any]) -> dict[str, Callable[..., Any]]:
        """Public functions defined by the file that ran in ``namespace``."""
        return {
            name: value
            for name, value in namespace.items()
            if inspect.isfunction(value)
            and value.__globals__ is namespace
            and not name.startswith("_")
        }
