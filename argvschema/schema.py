"""
Argvschema schema normalization and identifier allocation.

What this module provides
- DEFAULT_OPTIONS: the immutable reserved options ("help", "version") merged
  into every schema.
- Schema: validates and completes a raw declaration set, producing
  • options: read-only id → Option mapping (declaration order),
  • operands: the operand stack as a tuple (declaration order),
  • switches: the option cache, "-x"/"--long-id" → Option.

Normalization (per field, see _normalize)
- type membership ("invalid type"), operand types limited to string/number.
- a sequence default makes the field multi-valued; a scalar default on a
  multi-valued field becomes a one-element tuple.
- type inferred from the default (first element for sequences).
- untyped options are flags unless multi-valued (then "string");
  untyped operands are "string".
- required and default are exclusive; the default must match the type.
- hint defaults to the uppercased type name.

Allocation (per option, in declaration order, see _allocate)
- long id: kebab-case of the field id.
- short id: first character of the id, or its uppercase form when the
  lowercase one is claimed by an earlier option.
- any clash raises IdConflictError naming both fields.

Ordering
- Reserved options come first, then the caller's options in mapping order.
  Python dicts keep insertion order, so allocation is deterministic.
"""
from collections.abc import Mapping
from types import MappingProxyType

from .faults import *
from .fields import ArgumentKind, Field, Operand, Option
from .utils import *

DEFAULT_OPTIONS = MappingProxyType({
    "help": MappingProxyType({
        "description": "This help text",
    }),
    "version": MappingProxyType({
        "description": "Show utility version information",
    }),
})
"""
Reserved options present in every schema unless the caller overrides them
(a mapping merges over the reserved properties, None removes the option).
"""


def _unpack(declaration):
    # typed options merge over reserved properties like mappings do
    if isinstance(declaration, Option):
        return declaration.declared()
    return declaration


def _mismatch(id, first, second, hint):
    trigger(PropertyMismatchError(
        "property mismatch between %r & %r for %r" % (first, second, id),
        title="property mismatch",
        code=FaultCode.PROPERTY_MISMATCH,
        field=id,
        properties=(first, second),
        hint=hint,
        docs=getdoc(FaultCode.PROPERTY_MISMATCH),
    ))


def _invalid_type(id, type, hint):
    trigger(InvalidTypeError(
        "invalid type %r for %r" % (str(type), id),
        title="invalid type",
        code=FaultCode.INVALID_TYPE,
        field=id,
        type=type,
        hint=hint,
        docs=getdoc(FaultCode.INVALID_TYPE),
    ))


def _conflict(existing, id, spelling):
    trigger(IdConflictError(
        "id conflict between %r and %r on %r" % (existing, id, spelling),
        title="id conflict",
        code=FaultCode.ID_CONFLICT,
        field=id,
        existing=existing,
        token=spelling,
        hint="declare a distinct id for %r" % id,
        docs=getdoc(FaultCode.ID_CONFLICT),
    ))


def _normalize(field, /):
    """
    complete one declaration (type, default, many, hint) and check its consistency.

    returns a new declaration; the input is left untouched.
    """
    id = field.id
    declared = field.declared()
    operand = isinstance(field, Operand)
    allowed = [kind.value for kind in ArgumentKind if not (operand and kind is ArgumentKind.BOOLEAN)]

    type = declared.get("type", Unset)
    if type is not Unset and type not in allowed:
        _invalid_type(id, type, "use one of: %s" % ", ".join(allowed))

    default = declared.get("default", Unset)
    many = declared.get("many", Unset)
    if isinstance(default, tuple):
        if many is False:
            _mismatch(id, "default", "many", "use a single default value or set 'many'")
        many = True
    elif default is not Unset and many:
        default = (default,)

    samples = default if isinstance(default, tuple) else () if default is Unset else (default,)

    if type is Unset and samples:
        if (type := ArgumentKind.infer(samples[0])) is None:
            _invalid_type(id, samples[0].__class__.__name__, "use a string, number or boolean default")
        if type not in allowed:
            _invalid_type(id, type, "use one of: %s" % ", ".join(allowed))

    if type is Unset and (operand or many):
        type = ArgumentKind.STRING

    if field.required and default is not Unset:
        _mismatch(id, "required", "default", "a required field cannot have a default")

    if type is not Unset and not all(ArgumentKind(type).accepts(sample) for sample in samples):
        _mismatch(id, "default", "type", "use a %s default" % type)

    hint = declared.get("hint", Unset)
    if hint is Unset and type is not Unset:
        hint = type.upper()

    return field.__replace__(type=type, default=default, many=many, hint=hint)


def _allocate(option, switches, /):
    """
    assign short/long ids to a normalized option and claim them in 'switches'.
    """
    id = option.id

    long = coalesce(option.declared().get("long_id", Unset), kebab(id))
    short = option.declared().get("short_id", Unset)
    if short is Unset:
        short = id[0]
        if "-" + short in switches:
            short = short.upper()

    for spelling in ("-" + short, "--" + long):
        if spelling in switches:
            _conflict(switches[spelling].id, id, spelling)

    option = option.__replace__(short_id=short, long_id=long)
    for spelling in option.switches:
        switches[spelling] = option
    return option


class Schema:
    """
    Normalized, immutable declaration set shared by every parse call.

    Construction
    - Schema({"options": {...}, "operands": {...}})
    - Schema(options={...}, operands={...})
    Declarations may be Option/Operand instances or plain mappings.

    Keyword options
    - remainder: id of a trailing catch-all operand (multi-valued string)
      that absorbs every remaining positional token.

    Properties
    - options: id → Option (reserved options first).
    - operands: tuple of Operand in declaration order (the operand stack).
    - switches: "-x"/"--long-id" → Option (the option cache).
    - fields: every declaration, options first.

    Errors
    - SchemaException subclasses (see argvschema.faults), raised at construction.
    """

    def __init__(self, source=Unset, /, *, options=Unset, operands=Unset, remainder=Unset):
        if source is not Unset and source is not None:
            if not isinstance(source, Mapping):
                raise TypeError("schema must be a mapping")
            if options is not Unset or operands is not Unset:
                raise TypeError("schema cannot be given both as a mapping and as keywords")
            for key in source:
                if key not in ("options", "operands"):
                    trigger(UnknownPropertyError(
                        "unknown property %r for schema" % key,
                        title="unknown property",
                        code=FaultCode.UNKNOWN_PROPERTY,
                        property=key,
                        hint="a schema only declares 'options' and 'operands'",
                        docs=getdoc(FaultCode.UNKNOWN_PROPERTY),
                    ))
            options = source.get("options", Unset)
            operands = source.get("operands", Unset)

        options = coalesce(options, None) or {}
        operands = coalesce(operands, None) or {}
        if not isinstance(options, Mapping) or not isinstance(operands, Mapping):
            raise TypeError("schema 'options' and 'operands' must be mappings")

        merged = merge(DEFAULT_OPTIONS, {id: _unpack(declaration) for id, declaration in options.items()})

        switches = {}
        self._options = {}
        for id, declaration in merged.items():
            option = _normalize(Option.coerce(id, declaration))
            self._options[id] = _allocate(option, switches)
        self._switches = switches

        self._operands = []
        for id, declaration in operands.items():
            if declaration is None:
                continue
            if id in self._options:
                _conflict(id, id, id)
            self._operands.append(_normalize(Operand.coerce(id, declaration)))

        if remainder is not Unset:
            if not isinstance(remainder, str):
                raise TypeError("schema 'remainder' must be a string")
            if remainder in self._options or any(operand.id == remainder for operand in self._operands):
                _conflict(remainder, remainder, remainder)
            self._operands.append(_normalize(Operand(
                remainder,
                description="Remaining arguments",
                many=True,
            )))

        for operand in self._operands[:-1]:
            if operand.many:
                trigger(MisplacedOperandError(
                    "operand %r takes many values but is not the last operand" % operand.id,
                    title="misplaced operand",
                    code=FaultCode.MISPLACED_OPERAND,
                    field=operand.id,
                    hint="move %r to the end of the operands or drop 'many'" % operand.id,
                    docs=getdoc(FaultCode.MISPLACED_OPERAND),
                ))
        self._operands = tuple(self._operands)

    @property
    def options(self):
        return MappingProxyType(self._options)

    @property
    def operands(self):
        return self._operands

    @property
    def switches(self):
        return MappingProxyType(self._switches)

    @property
    def fields(self):
        return (*self._options.values(), *self._operands)

    def __repr__(self):
        return "schema(options=%r, operands=%r)" % (tuple(self._options), tuple(operand.id for operand in self._operands))

    def __rich_repr__(self):
        yield "options", self._options
        yield "operands", self._operands


__all__ = (
    "DEFAULT_OPTIONS",
    "Schema",
)
