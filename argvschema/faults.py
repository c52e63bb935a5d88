"""
Argvschema faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues
  (errors and warnings). Codes are grouped by domain to keep copy consistent
  and make logs/searches predictable.
- ArgvException / ArgvWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- trigger(): central entry point to surface any fault (raise or warn).
- getdoc(): optional description lookup for a code from the host application.

Families
- SchemaException: raised while a schema is normalized (construction time).
- ParseException: raised while a token sequence is scanned (per parse call).
- ValidationException: raised after the scan, when required fields are unset.

UX goals
- Position-first messages: parse messages include the ordinal position of the
  offending token (“at third position”).
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).

Integration
- The parser raises faults through trigger(fault, **context); nothing is retried
  and no partial result is returned.
- Hosts that want pretty output print the fault with a rich console; the fault
  renders itself through __rich__.
"""
import inspect
import os.path
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - schema (101xx)
      • UNKNOWN_PROPERTY, ID_CONFLICT, INVALID_TYPE, PROPERTY_MISMATCH,
        MISPLACED_OPERAND
    - options (111xx)
      • UNKNOWN_OPTION, MISSING_VALUE, FLAG_ASSIGNMENT, DUPLICATE_ASSIGNMENT
    - operands (1112x)
      • UNKNOWN_ARGUMENT
    - values (1113x)
      • INVALID_VALUE, REJECTED_VALUE, DELEGATED_ERROR
    - validation (112xx)
      • MISSING_ARGUMENTS
    - warnings (12xxx)
      • EMPTY_INLINE_VALUE, DELEGATED_WARNING

    rationale
    - codes are discoverable (searchable in logs and docs) and normalized to a string
      via normalize() so hosts can remap them if desired (e.g., to shorter labels).
    """
    # --- schema errors (101xx) ---
    UNKNOWN_PROPERTY            = 10101
    ID_CONFLICT                 = 10102
    INVALID_TYPE                = 10103
    PROPERTY_MISMATCH           = 10104
    MISPLACED_OPERAND           = 10105

    # --- option errors (111xx) ---
    UNKNOWN_OPTION              = 11111
    MISSING_VALUE               = 11112
    FLAG_ASSIGNMENT             = 11113
    DUPLICATE_ASSIGNMENT        = 11114

    # --- operand errors (1112x) ---
    UNKNOWN_ARGUMENT            = 11121

    # --- value errors (1113x) ---
    INVALID_VALUE               = 11131
    REJECTED_VALUE              = 11132
    DELEGATED_ERROR             = 11133

    # --- validation errors (112xx) ---
    MISSING_ARGUMENTS           = 11201

    # --- warnings (12xxx) ---
    EMPTY_INLINE_VALUE          = 12111
    DELEGATED_WARNING           = 12131

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _program():
    main = __import__("__main__")
    return getattr(main, "__prog__", os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "argvschema")


def _render(fault, styles, title):
    """
    build the rich renderable shared by exceptions and warnings.

    options honoured
    - colorful (default True): apply styles.
    - fancy (default False): wrap the body in a Panel titled with the header.
    - title / code / hint: header and hint line (missing parts render empty).
    """
    colorful = fault.options.get("colorful", True)
    fancy = fault.options.get("fancy", False)

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    code = fault.options.get("code")
    header = Text.assemble(
        "[ ",
        text(_program(), styler("prog-name")),
        " — ",
        text(code.normalize() if isinstance(code, FaultCode) else code, styler("code")),
        " | ",
        text(str(fault.options.get("title", "")).title(), styler(title)),
        " ]"
    )
    message = text(fault.message, styler("message"))
    hint = Text.assemble(text(" → ", styler("hint-arrow")), text(fault.options.get("hint"), styler("hint")))

    if fancy:
        return Panel(Group(message, hint), title=header, title_align="left")

    return Group(header, message, hint)


class ArgvException(Exception):
    """
    base type of every error raised by the package.

    - message: one-sentence, lowercased description (also str(exception)).
    - options: read-only context (title, code, hint, field, token, index, docs, …).
    - __rich__: renders header/message/hint for rich consoles.
    - __replace__: derive a copy with merged options (used by trigger()).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __getattr__(self, name):
        # expose context entries as attributes (fault.field, fault.token, …)
        try:
            return self.__dict__["options"][name]
        except KeyError:
            raise AttributeError(name) from None

    def __str__(self):
        return str(self.message)

    def __rich__(self):
        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(__import__("__main__"), "__styles__", {}))
        return _render(self, styles, "error-title")

    def __trigger__(self):
        raise self from None

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class SchemaException(ArgvException): ...
class UnknownPropertyError(SchemaException): ...
class IdConflictError(SchemaException): ...
class InvalidTypeError(SchemaException): ...
class PropertyMismatchError(SchemaException): ...
class MisplacedOperandError(SchemaException): ...


class ParseException(ArgvException): ...
class UnknownOptionError(ParseException): ...
class UnknownArgumentError(ParseException): ...
class MissingValueError(ParseException): ...
class FlagAssignmentError(ParseException): ...
class DuplicateAssignmentError(ParseException): ...
class InvalidValueError(ParseException): ...
class RejectedValueError(ParseException): ...
class DelegatedError(ParseException): ...


class ValidationException(ArgvException): ...
class MissingArgumentsError(ValidationException): ...


class ArgvWarning(ABC, Warning):
    """
    base type of every warning issued by the package (non-fatal).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message)

    def __rich__(self):
        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",  # softer pinky title for warnings
            "message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        } | getattr(__import__("__main__"), "__styles__", {}))
        return _render(self, styles, "warning-title")

    def __trigger__(self):
        warnings.warn(self, stacklevel=len(inspect.stack()))

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class EmptyInlineValueWarning(ArgvWarning): ...
class DelegatedWarning(ArgvWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given context options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - exceptions are raised; warnings go through the warnings module.

    typical options
    - title, code, hint, docs, and any context the reporter may want to show
      (e.g., field/token/index/suggestions/exception).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    lookup
    - the host application may expose a __docs__ mapping in __main__ where keys
      are FaultCode instances and values are short documentation strings.
    - when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "ArgvException",
    "SchemaException",
    "UnknownPropertyError",
    "IdConflictError",
    "InvalidTypeError",
    "PropertyMismatchError",
    "MisplacedOperandError",
    "ParseException",
    "UnknownOptionError",
    "UnknownArgumentError",
    "MissingValueError",
    "FlagAssignmentError",
    "DuplicateAssignmentError",
    "InvalidValueError",
    "RejectedValueError",
    "DelegatedError",
    "ValidationException",
    "MissingArgumentsError",
    "ArgvWarning",
    "EmptyInlineValueWarning",
    "DelegatedWarning",
    "FaultCode",
    "trigger",
    "getdoc",
)
