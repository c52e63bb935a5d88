"""
Argvschema token stream and expansion.

What this module provides
- Token: one primitive token (text, 1-based surface position, inline marker).
- TokenStream: the queue a single parse call consumes. Expansion steps push
  derived tokens back to its front, so the scanner keeps reading one queue.
- unquote / expand: value-level expansion (quoted literals, comma lists).
- split_long: "--name=value" → ("--name", "value").
- split_cluster: "-abc" / "-ovalue" / "-o=value" → resolved short options.

Discipline
- A TokenStream belongs to exactly one parse call. The scanner takes from the
  front; expansion pushes back to the front; nothing else touches it.
- Pushed-back tokens are "inline": they are values attached to an option on
  the same surface token, so they are never classified as options themselves.
  They keep the position of the surface token they came from.

Quoting
- A token wholly wrapped in matching quote characters ('"' or "'") is a
  literal: the quotes are removed and comma-splitting is suppressed.
"""
import re
from collections import deque
from typing import NamedTuple

from .faults import *
from .utils import *

TERMINATOR = "--"
QUOTES = ('"', "'")

_NUMERIC = re.compile(r"[-+]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][-+]?[0-9]+)?")


class Token(NamedTuple):
    text: str
    index: int
    inline: bool = False


class TokenStream:
    """
    owned, mutable token queue for one parse call.

    - take(): pop the next token from the front.
    - peek(): look at the next token without consuming it (Unset when empty).
    - push(text, index): put an inline value back at the front.
    """

    def __init__(self, tokens=(), /):
        self._tokens = deque(Token(str(text), index) for index, text in enumerate(tokens, start=1))

    def __bool__(self):
        return bool(self._tokens)

    def __len__(self):
        return len(self._tokens)

    def __iter__(self):
        return iter(tuple(self._tokens))

    def take(self):
        return self._tokens.popleft()

    def peek(self):
        return self._tokens[0] if self._tokens else Unset

    def push(self, text, index, /):
        self._tokens.appendleft(Token(text, index, True))

    def __repr__(self):
        return "token-stream(%s)" % ", ".join(map(repr, self._tokens))


def numeric(text, /):
    """
    True when the text reads as a (possibly signed) decimal number.
    """
    return bool(_NUMERIC.fullmatch(text))


def unquote(text, /):
    """
    return (text, quoted): strip one pair of matching surrounding quotes.
    """
    if len(text) >= 2 and text[0] in QUOTES and text[-1] == text[0]:
        return text[1:-1], True
    return text, False


def expand(text, /, many=False):
    """
    expand one argument token into its raw values.

    - quoted literal → [unwrapped text] (never split)
    - multi-valued field → comma-split pieces, in order
    - otherwise → [text]

    Examples
    - expand("a,b,c", many=True)   -> ["a", "b", "c"]
    - expand('"a,b"', many=True)   -> ["a,b"]
    - expand("a,b")                -> ["a,b"]
    """
    text, quoted = unquote(text)
    if quoted or not many:
        return [text]
    return text.split(",")


def split_long(text, /):
    """
    split a long option token at its first '='.

    returns (spelling, value) where value is None when no '=' is present
    and "" when '=' ends the token.
    """
    spelling, separator, value = text.partition("=")
    return spelling, value if separator else None


def split_cluster(token, switches, /):
    """
    resolve a condensed short-option token against the option cache.

    yields (spelling, option, value) for each option in the cluster:
    - flags yield value=Unset and expansion continues;
    - the first value-taking option swallows the rest of the cluster as its
      value (one leading '=' skipped; Unset when nothing is left) and
      expansion stops.

    raises
    - UnknownOptionError: a character has no matching option.
    - FlagAssignmentError: '=' follows a flag ("-v=1").
    """
    cluster = token.text[1:]
    for position, character in enumerate(cluster):
        spelling = "-" + character
        try:
            option = switches[spelling]
        except KeyError:
            trigger(UnknownOptionError(
                "unknown option %r in %r at %s position" % (character, token.text, ordinal(token.index)),
                title="unknown option",
                code=FaultCode.UNKNOWN_OPTION,
                token=token.text,
                input=spelling,
                index=token.index,
                hint="check the letters of %r; use '--' before operands that start with '-'" % token.text,
                docs=getdoc(FaultCode.UNKNOWN_OPTION),
            ))

        rest = cluster[position + 1:]
        if option.flag:
            if rest.startswith("="):
                trigger(FlagAssignmentError(
                    "flag %r in %r at %s position cannot have a value" % (spelling, token.text, ordinal(token.index)),
                    title="flag cannot take a value",
                    code=FaultCode.FLAG_ASSIGNMENT,
                    field=option.id,
                    token=token.text,
                    index=token.index,
                    hint="remove everything from '=' (for example: %s)" % spelling,
                    docs=getdoc(FaultCode.FLAG_ASSIGNMENT),
                ))
            yield spelling, option, Unset
            continue

        yield spelling, option, rest.removeprefix("=") if rest else Unset
        return


__all__ = (
    "TERMINATOR",
    "QUOTES",
    "Token",
    "TokenStream",
    "numeric",
    "unquote",
    "expand",
    "split_long",
    "split_cluster",
)
