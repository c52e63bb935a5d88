r"""
Argvschema field declarations.

Overview
- Tags
  • ArgumentKind: closed set of argument types ("string", "number", "boolean").

- Declarations
  • Operand: positional field, consumed in declaration order.
  • Option: named field matched by "-x" or "--long-id" tokens; a flag when it
    takes no argument.

- Introspection & representation
  • FieldType metaclass provides stable __repr__/__rich_repr__ and exposes the
    names declared in __introspectable__ as read-only properties.

Metadata (sanitized on construction)
- Shared
  • id: Unset | str (assigned from the schema key during normalization).
  • description: Unset | str | Text.
  • type: Unset | str | ArgumentKind (membership is checked by the schema).
  • hint: Unset | str (display label), non-empty when provided.
  • required: bool.
  • default: any value, or a sequence of values for multi-valued fields.
  • many: Unset | bool.
  • parse / validate: Unset | Callable.
- Option only
  • short_id: Unset | single character.
  • long_id: Unset | kebab-case string.

None is accepted for every keyword and means "not declared".

Loosely-typed data
- Option.coerce(id, mapping) / Operand.coerce(id, mapping) build a declaration
  from a plain mapping, accepting the camelCase and alias spellings of the
  wire format (shortId, longId, name, value, multiple) and rejecting any
  other key with UnknownPropertyError.

Quick example:
    >>> from argvschema.fields import Option, Operand
    >>> Option(type="number", default=3)
    option(id=None, short_id=None, long_id=None, type=<ArgumentKind.NUMBER: 'number'>, ...)
    >>> Option.coerce("tags", {"multiple": True, "name": "TAG"}).many
    True
"""
import builtins
import functools
import operator
import re
from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType

from rich.text import Text

from .faults import UnknownPropertyError, PropertyMismatchError, FaultCode, trigger, getdoc
from .utils import *


class ArgumentKind(StrEnum):
    """
    closed set of argument types a field may declare.

    - STRING: token kept as-is.
    - NUMBER: token converted to int (integral literal) or float.
    - BOOLEAN: presence-only; an option of this kind is a flag.
    """
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"

    @classmethod
    def infer(cls, value, /):
        """
        map a python value to its tag, or None when it has no tag.

        bool is checked before int because bool is an int subclass.
        """
        if isinstance(value, bool):
            return cls.BOOLEAN
        if isinstance(value, int | float):
            return cls.NUMBER
        if isinstance(value, str):
            return cls.STRING
        return None

    def accepts(self, value, /):
        return type(self).infer(value) is self


class FieldType(type):
    """
    Metaclass that turns declarations into introspectable, read-only records.

    Responsibilities
    - Expose every name listed in __introspectable__ as a read-only property
      backed by "_{name}" (see mirror()).
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics (rich.pretty, tracebacks).

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Example
            - option(id='verbose', short_id='v', long_id='verbose', ...)
            """
            fields = ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            return f"{type(self).__typename__}({fields})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate python-level shapes of shared declaration metadata.

    Semantic rules (type membership, default/type agreement, required/default
    exclusivity) belong to the schema normalizer, which knows the field id.

    Raises
    - TypeError: wrong python type for a property.
    - ValueError: empty id/hint after trimming.
    """
    if not isinstance(id := metadata["id"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'id' must be a string")
    elif isinstance(id, str) and not (id := id.strip()):
        raise ValueError(f"{cls.__typename__} 'id' cannot be empty")
    metadata["id"] = id

    if not isinstance(metadata["description"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'description' must be a string")

    if not isinstance(hint := metadata["hint"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'hint' must be a string")
    elif isinstance(hint, str) and not (hint := hint.strip()):
        raise ValueError(f"{cls.__typename__} 'hint' cannot be empty")
    metadata["hint"] = hint

    if isinstance(type := metadata["type"], str) and not isinstance(type, ArgumentKind):
        # unknown names are kept verbatim so the schema can report them by field id
        metadata["type"] = ArgumentKind(type) if type in ArgumentKind else type

    metadata["required"] = builtins.bool(coalesce(metadata["required"], False))

    if not isinstance(many := metadata["many"], bool | Unset):
        raise TypeError(f"{cls.__typename__} 'many' must be a boolean")

    for name in ("parse", "validate"):
        if not (metadata[name] is Unset or callable(metadata[name])):
            raise TypeError(f"{cls.__typename__} '{name}' must be callable")

    if isinstance(default := metadata["default"], list):
        metadata["default"] = tuple(default)


def _sanitize_named_metadata(cls, metadata, /):
    r"""
    Internal: validate identifiers of named declarations (options).

    - short_id: exactly one character, not '-', '=' or whitespace.
    - long_id: kebab-case segments r"[^\W_]+(-[^\W_]+)*" (unicode letters allowed).
    """
    if not isinstance(short := metadata["short_id"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'short_id' must be a string")
    elif isinstance(short, str) and (len(short) != 1 or short in "-=" or short.isspace()):
        raise ValueError(f"{cls.__typename__} 'short_id' must be a single character (got {short!r})")

    if not isinstance(long := metadata["long_id"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'long_id' must be a string")
    elif isinstance(long, str) and not re.fullmatch(r"[^\W_]+(-[^\W_]+)*", long):
        raise ValueError(f"{cls.__typename__} 'long_id' must be a kebab-case name (got {long!r})")


class Field(metaclass=FieldType):
    """
    Shared behaviour of Operand and Option.

    Instances are immutable: properties mirror sanitized metadata, and
    __replace__ derives a new declaration (the schema uses it to produce the
    completed copy of each declaration).
    """

    # external spelling → attribute name, used by coerce()
    __properties__ = MappingProxyType({})

    def __init__(self, **metadata):
        self._declared = {name: object for name, object in metadata.items() if object is not Unset}
        for name, object in metadata.items():
            setattr(self, "_" + name, object if object is not Unset else None)
        self._required = metadata["required"]
        self._many = builtins.bool(metadata["many"])

    def declared(self):
        """
        return the explicitly declared properties (attribute name → value).
        """
        return dict(self._declared)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        metadata = self.declared() | overrides
        return type(self)(metadata.pop("id", Unset), **metadata)

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self._declared == other._declared

    def __hash__(self):
        return hash((type(self), self._declared.get("id")))

    @classmethod
    def coerce(cls, id, source, /):
        """
        build a declaration for field 'id' from a declaration or a plain mapping.

        - an instance of this class is re-keyed to 'id'.
        - a mapping is checked against __properties__: unknown keys raise
          UnknownPropertyError, two spellings of one attribute raise
          PropertyMismatchError, None values are skipped.
        """
        if isinstance(source, cls):
            return source.__replace__(id=id)
        if isinstance(source, Field):
            raise TypeError(f"{cls.__typename__} {id!r} cannot be declared with a {type(source).__typename__}")
        if not isinstance(source, Mapping):
            raise TypeError(f"{cls.__typename__} {id!r} must be declared with a mapping")

        metadata = {}
        spellings = {}
        for key, value in source.items():
            try:
                name = cls.__properties__[key]
            except KeyError:
                trigger(UnknownPropertyError(
                    "unknown property %r for %r" % (key, id),
                    title="unknown property",
                    code=FaultCode.UNKNOWN_PROPERTY,
                    field=id,
                    property=key,
                    hint="use one of: %s" % ", ".join(sorted(cls.__properties__)),
                    docs=getdoc(FaultCode.UNKNOWN_PROPERTY),
                ))
            if value is None:
                continue
            if name in spellings:
                trigger(PropertyMismatchError(
                    "property mismatch between %r & %r for %r" % (spellings[name], key, id),
                    title="property mismatch",
                    code=FaultCode.PROPERTY_MISMATCH,
                    field=id,
                    properties=(spellings[name], key),
                    hint="keep only one of %r and %r" % (spellings[name], key),
                    docs=getdoc(FaultCode.PROPERTY_MISMATCH),
                ))
            spellings[name] = key
            metadata[name] = value

        metadata.pop("id", None)  # the schema key is the id
        return cls(id, **metadata)


class Operand(Field):
    """
    Positional field specification.

    Operands are consumed in declaration order by tokens that are not options
    (and by every token after the "--" terminator). The last operand may be
    multi-valued and then absorbs all remaining positional tokens.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    """

    __introspectable__ = (
        "id",
        "description",
        "type",
        "hint",
        "required",
        "default",
        "many",
        "parse",
        "validate",
    )

    __properties__ = MappingProxyType({
        "id": "id",
        "description": "description",
        "type": "type",
        "hint": "hint",
        "name": "hint",
        "required": "required",
        "default": "default",
        "value": "default",
        "many": "many",
        "multiple": "many",
        "parse": "parse",
        "validate": "validate",
    })

    def __init__(
            self,
            id=Unset,
            /,
            *,
            description=Unset,
            type=Unset,
            hint=Unset,
            required=False,
            default=Unset,
            many=Unset,
            parse=Unset,
            validate=Unset,
    ):
        """
        Construct an Operand declaration.

        Parameters
        - id: field id (normally assigned from the schema key).
        - description: short help text.
        - type: "string" or "number" (checked by the schema).
        - hint: display label; defaults to the uppercased type name.
        - required: whether the operand must be present after defaulting.
        - default: value used when no token fills the operand.
        - many: absorb every remaining positional token into a list.
        - parse: callable(raw token) -> value, replaces built-in coercion.
        - validate: callable(value) -> bool; False or an exception rejects it.
        """
        metadata = {
            "id": id,
            "description": description,
            "type": type,
            "hint": hint,
            "required": required,
            "default": default,
            "many": many,
            "parse": parse,
            "validate": validate,
        }
        metadata = {name: Unset if object is None else object for name, object in metadata.items()}
        _sanitize_metadata(builtins.type(self), metadata)
        super().__init__(**metadata)


class Option(Field):
    """
    Named field specification.

    An option is matched by "-x" (short id, condensable as "-xyz") or
    "--long-id" tokens. Without a type (or with type "boolean") it is a flag:
    its presence records True. With a type it consumes one argument token
    ("--name value", "--name=value", "-nvalue", "-n=value").

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    - flag / switches are derived from the normalized metadata.
    """

    __introspectable__ = (
        "id",
        "short_id",
        "long_id",
        "description",
        "type",
        "hint",
        "required",
        "default",
        "many",
        "parse",
        "validate",
    )

    __properties__ = MappingProxyType({
        **Operand.__properties__,
        "shortId": "short_id",
        "short_id": "short_id",
        "longId": "long_id",
        "long_id": "long_id",
    })

    def __init__(
            self,
            id=Unset,
            /,
            *,
            short_id=Unset,
            long_id=Unset,
            description=Unset,
            type=Unset,
            hint=Unset,
            required=False,
            default=Unset,
            many=Unset,
            parse=Unset,
            validate=Unset,
    ):
        """
        Construct an Option declaration.

        Parameters
        - id: field id (normally assigned from the schema key).
        - short_id: single character matched as "-x"; derived from the id when omitted.
        - long_id: kebab-case name matched as "--name"; derived from the id when omitted.
        - description: short help text.
        - type: "string", "number" or "boolean" (checked by the schema).
        - hint: display label; defaults to the uppercased type name.
        - required: whether the option must be present after defaulting.
        - default: value used when the option is absent.
        - many: accumulate repeated occurrences (and comma lists) into a list.
        - parse: callable(raw token) -> value, replaces built-in coercion.
        - validate: callable(value) -> bool; False or an exception rejects it.
        """
        metadata = {
            "id": id,
            "short_id": short_id,
            "long_id": long_id,
            "description": description,
            "type": type,
            "hint": hint,
            "required": required,
            "default": default,
            "many": many,
            "parse": parse,
            "validate": validate,
        }
        metadata = {name: Unset if object is None else object for name, object in metadata.items()}
        _sanitize_metadata(builtins.type(self), metadata)
        _sanitize_named_metadata(builtins.type(self), metadata)
        super().__init__(**metadata)

    @property
    def flag(self):
        """
        True when the option takes no argument (no type, or type "boolean").
        """
        return self._type in (None, ArgumentKind.BOOLEAN)

    @property
    def switches(self):
        """
        the token spellings that select this option, short first.
        """
        return tuple(
            prefix + name for prefix, name in (("-", self._short_id), ("--", self._long_id)) if name
        )


__all__ = (
    "ArgumentKind",
    "Field",
    "Operand",
    "Option",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del FieldType
