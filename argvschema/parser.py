"""
Argvschema parse engine.

What this module provides
- ArgvParser: binds a normalized Schema and parses token sequences into a
  result dict (field id → value).
- Scanner: the per-call state machine walking the token stream once.
- parse(schema, argv): one-shot convenience.

Scan (see Scanner.step), in precedence order for each token
1. after "--", an inline value, a bare "-" or any token not starting with
   "-": routed to the open operand, else the next one on the operand stack.
2. "--": terminator; later tokens are operands, the next operand is popped
   as pending.
3. "--long" / "--long=value": long option.
4. "-abc" / "-ovalue" / "-o=value": condensed short options.

Values
- a flag records True; a typed option takes the next token (or its inline
  value) and a multi-valued field comma-splits it (quotes suppress splitting).
- a multi-valued option keeps taking the following tokens that do not start
  with "-" once no operand is left to receive them ("--tags a b").
- multi-valued fields append, single-valued fields reject a second value.
- an option left without its value at the end of input is not an error by
  itself: it stays unset and surfaces through defaulting/validation.

After the scan
- a matched "help" flag short-circuits: the configured helper renders the
  payload (or the defaulted values are returned unvalidated).
- a matched "version" flag returns the configured version string.
- otherwise defaults fill unset fields, required fields are checked, and every
  declared id is materialized (flags False, multi-valued [], others None).

Quick start
    >>> from argvschema import ArgvParser
    >>> parser = ArgvParser({
    ...     "options": {"count": {"type": "number"}, "verbose": {}},
    ...     "operands": {"files": {"many": True}},
    ... })
    >>> parser.parse(["--verbose", "--count=3", "a.txt", "b.txt"])["count"]
    3
"""
import difflib
import shlex
import sys
from collections import deque
from collections.abc import Iterable
from enum import Enum

from .coercion import COERCIONS, coerce
from .faults import *
from .fields import ArgumentKind, Option
from .schema import Schema
from .tokens import *
from .utils import *


class ParseState(Enum):
    IDLE = "idle"
    OPTION_OPEN = "option-open"
    OPERAND_OPEN = "operand-open"
    TERMINATED = "terminated"


class Scanner:
    """
    single-use state machine for one parse call.

    state
    - tokens: the owned TokenStream (consumed from the front).
    - values: the raw result dict (only fields that received a value).
    - stack: remaining operands, first-declared first.
    - operand: the pending/open operand, or Unset.
    - state: ParseState, informational except for TERMINATED.
    """

    def __init__(self, schema, tokens, /):
        self.schema = schema
        self.tokens = tokens
        self.values = {}
        self.stack = deque(schema.operands)
        self.operand = Unset
        self.state = ParseState.IDLE

    def run(self):
        while self.tokens:
            self.step(self.tokens.take())
        return self.values

    def step(self, token):
        text = token.text
        if (
            self.state is ParseState.TERMINATED or
            token.inline or
            text == "-" or
            not text.startswith("-")
        ):
            return self._operand(token)
        if text == TERMINATOR:
            return self._terminate()
        if text.startswith("--"):
            return self._long(token)
        return self._cluster(token)

    def _operand(self, token):
        if self.operand is Unset:
            if not self.stack:
                trigger(UnknownArgumentError(
                    "unknown argument %r at %s position" % (token.text, ordinal(token.index)),
                    title="unknown argument",
                    code=FaultCode.UNKNOWN_ARGUMENT,
                    token=token.text,
                    index=token.index,
                    hint="remove it, or check that the options before it are spelled right",
                    docs=getdoc(FaultCode.UNKNOWN_ARGUMENT),
                ))
            self.operand = self.stack.popleft()

        operand = self.operand
        for text in expand(token.text, many=operand.many):
            self._assign(operand, coerce(operand, text, token), token)

        if not operand.many:
            self.operand = Unset
        if self.state is not ParseState.TERMINATED:
            self.state = ParseState.OPERAND_OPEN if operand.many else ParseState.IDLE

    def _terminate(self):
        self.state = ParseState.TERMINATED
        if self.operand is Unset and self.stack:
            self.operand = self.stack.popleft()

    def _long(self, token):
        spelling, value = split_long(token.text)
        try:
            option = self.schema.switches[spelling]
        except KeyError:
            longs = [name for name in self.schema.switches if name.startswith("--")]
            suggestions = difflib.get_close_matches(spelling, longs, 5)
            try:
                hint = "did you mean %r?" % suggestions[0]
            except IndexError:
                hint = "use one of: %s" % ", ".join(longs)
            trigger(UnknownOptionError(
                "unknown option %r at %s position" % (spelling, ordinal(token.index)),
                title="unknown option",
                code=FaultCode.UNKNOWN_OPTION,
                token=token.text,
                input=spelling,
                index=token.index,
                suggestions=suggestions,
                hint=hint,
                docs=getdoc(FaultCode.UNKNOWN_OPTION),
            ))

        if value is not None:
            if option.flag:
                trigger(FlagAssignmentError(
                    "flag %r at %s position cannot have an inline value" % (spelling, ordinal(token.index)),
                    title="flag cannot take a value",
                    code=FaultCode.FLAG_ASSIGNMENT,
                    field=option.id,
                    token=token.text,
                    index=token.index,
                    hint="remove everything from '=' (for example: %s)" % spelling,
                    docs=getdoc(FaultCode.FLAG_ASSIGNMENT),
                ))
            self._inline(spelling, option, value, token)

        self._open(spelling, option, token)

    def _cluster(self, token):
        for spelling, option, value in split_cluster(token, self.schema.switches):
            if value is not Unset:
                self._inline(spelling, option, value, token)
            self._open(spelling, option, token)

    def _inline(self, spelling, option, value, token):
        if not value:
            trigger(EmptyInlineValueWarning(
                "empty inline value for option %r at %s position" % (spelling, ordinal(token.index)),
                title="empty inline value",
                code=FaultCode.EMPTY_INLINE_VALUE,
                field=option.id,
                token=token.text,
                index=token.index,
                hint="add a value after '=' or pass it after a space (for example: %s <%s>)" % (spelling, option.hint),
                docs=getdoc(FaultCode.EMPTY_INLINE_VALUE),
            ))
        self.tokens.push(value, token.index)

    def _open(self, spelling, option, token):
        if option.flag:
            return self._assign(option, COERCIONS[ArgumentKind.BOOLEAN](), token)

        self.state = ParseState.OPTION_OPEN
        argument = self._argument(spelling, option, token)
        while argument is not Unset:
            for text in expand(argument.text, many=option.many):
                self._assign(option, coerce(option, text, argument), argument)
            argument = self._absorb(option)
        self.state = ParseState.IDLE

    def _absorb(self, option):
        """
        take the next plain token as another value of a multi-valued option.

        only once no operand is left to claim it: an open operand or a
        non-empty operand stack keeps positional tokens for the operands.
        """
        if not option.many or self.operand is not Unset or self.stack:
            return Unset
        upcoming = self.tokens.peek()
        if upcoming is Unset or upcoming.inline or upcoming.text.startswith("-"):
            return Unset
        return self.tokens.take()

    def _argument(self, spelling, option, token):
        """
        take the argument token of a typed option, or Unset when there is none.
        """
        upcoming = self.tokens.peek()
        if upcoming is Unset:
            # end of input: left unset for defaulting/validation
            return Unset
        if upcoming.inline:
            return self.tokens.take()
        if upcoming.text == TERMINATOR:
            return Unset
        if (
            upcoming.text.startswith("-") and
            upcoming.text != "-" and
            not (option.type == ArgumentKind.NUMBER and numeric(upcoming.text))
        ):
            trigger(MissingValueError(
                "missing %s for option %r at %s position" % (option.hint, spelling, ordinal(token.index)),
                title="missing option value",
                code=FaultCode.MISSING_VALUE,
                field=option.id,
                token=token.text,
                index=token.index,
                hint="provide a value (for example: %s=<%s>)" % (spelling, option.hint),
                docs=getdoc(FaultCode.MISSING_VALUE),
            ))
        return self.tokens.take()

    def _assign(self, field, value, token):
        if field.many:
            self.values.setdefault(field.id, []).append(value)
        elif field.id in self.values:
            trigger(DuplicateAssignmentError(
                "expecting a single %s for argument %r, got another at %s position" % (
                    field.hint or "flag", field.id, ordinal(token.index)
                ),
                title="duplicate argument",
                code=FaultCode.DUPLICATE_ASSIGNMENT,
                field=field.id,
                token=token.text,
                index=token.index,
                hint="give %r only once" % field.id,
                docs=getdoc(FaultCode.DUPLICATE_ASSIGNMENT),
            ))
        else:
            self.values[field.id] = value


def _prepare(argv):
    """
    resolve the token sequence: sys.argv[1:], a shell-like string, or an iterable.
    """
    if argv is Unset:
        return sys.argv[1:]
    if isinstance(argv, str):
        return shlex.split(argv)
    if not isinstance(argv, Iterable):
        raise TypeError("parse() argument must be a string or an iterable of strings")
    tokens = list(argv)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("parse() tokens must be strings")
    return tokens


def _defaults(schema, values):
    for field in schema.fields:
        if field.id not in values and field.default is not None:
            values[field.id] = list(field.default) if field.many else field.default
    return values


def _require(schema, values):
    missing = [field for field in schema.fields if field.required and field.id not in values]
    if not missing:
        return
    names = ["--" + field.long_id if isinstance(field, Option) else field.id for field in missing]
    trigger(MissingArgumentsError(
        "missing %s %s" % (
            pluralize("argument") if len(names) > 1 else "argument",
            ", ".join(map(repr, names))
        ),
        title="missing arguments",
        code=FaultCode.MISSING_ARGUMENTS,
        fields=tuple(field.id for field in missing),
        names=tuple(names),
        hint="provide %s" % " and ".join(names),
        docs=getdoc(FaultCode.MISSING_ARGUMENTS),
    ))


def _materialize(schema, values):
    result = {}
    for field in schema.fields:
        if field.id in values:
            result[field.id] = values[field.id]
        elif field.many:
            result[field.id] = []
        elif isinstance(field, Option) and field.flag:
            result[field.id] = False
        else:
            result[field.id] = None
    return result


class ArgvParser:
    """
    Schema-driven argument parser.

    Construction
    - ArgvParser({"options": {...}, "operands": {...}})
    - ArgvParser(options={...}, operands={...})
    - ArgvParser(Schema(...))

    Keyword options
    - remainder: id of a trailing catch-all operand (see Schema).
    - helper: callable(parser) -> payload, rendered when "help" is matched.
    - version: string returned when "version" is matched.

    The schema is normalized once here; parse() may be called any number of
    times, each call owning its own token stream and result dict.
    """

    def __init__(self, schema=Unset, /, *, options=Unset, operands=Unset, remainder=Unset, helper=Unset, version=Unset):
        if isinstance(schema, Schema):
            if options is not Unset or operands is not Unset or remainder is not Unset:
                raise TypeError("a prepared schema cannot be combined with schema keywords")
            self._schema = schema
        else:
            self._schema = Schema(schema, options=options, operands=operands, remainder=remainder)

        if not (helper is Unset or callable(helper)):
            raise TypeError("parser 'helper' must be callable")
        if not isinstance(version, str | Unset):
            raise TypeError("parser 'version' must be a string")
        self._helper = helper
        self._version = version

    @property
    def schema(self):
        return self._schema

    @property
    def options(self):
        return self._schema.options

    @property
    def operands(self):
        return self._schema.operands

    @property
    def helper(self):
        return coalesce(self._helper)

    @property
    def version(self):
        return coalesce(self._version)

    def parse(self, argv=Unset, /):
        """
        parse a token sequence into {field id: value}.

        parameters
        - argv: sequence of strings, a shell-like string (split with shlex),
          or omitted for sys.argv[1:].

        returns
        - dict with every declared field id, or the helper payload / version
          string when "help" / "version" was matched.

        raises
        - ParseException / ValidationException subclasses (argvschema.faults).
        """
        values = Scanner(self._schema, TokenStream(_prepare(argv))).run()
        return self._finalize(values)

    def _finalize(self, values):
        options = self._schema.options

        if "help" in options and options["help"].flag and values.get("help") is True:
            if self._helper is not Unset:
                return self._helper(self)
            return _materialize(self._schema, _defaults(self._schema, values))

        if "version" in options and options["version"].flag and values.get("version") is True:
            if self._version is not Unset:
                return self._version
            return _materialize(self._schema, _defaults(self._schema, values))

        _defaults(self._schema, values)
        _require(self._schema, values)
        return _materialize(self._schema, values)

    def __repr__(self):
        return "argv-parser(%r)" % self._schema

    def __rich_repr__(self):
        yield "schema", self._schema
        yield "helper", self.helper
        yield "version", self.version


def parse(schema, argv=Unset, /, **options):
    """
    one-shot parse: ArgvParser(schema, **options).parse(argv).
    """
    return ArgvParser(schema, **options).parse(argv)


__all__ = (
    "ParseState",
    "Scanner",
    "ArgvParser",
    "parse",
)
