"""
Argvschema argument coercion.

Converts one raw value (a string from the token stream) into the typed value
of a field.

Order
1. a declared `parse` hook is called with the raw text; its result is used as-is.
2. otherwise the COERCIONS table entry for the field type converts the text.
3. a declared `validate` hook is called with the typed value; raising or
   returning False rejects it.

Hooks are user code: warnings they emit are re-issued as DelegatedWarning and
exceptions they raise are wrapped (DelegatedError / RejectedValueError) with
the hook's exception kept in the fault options ("exception").
"""
from types import MappingProxyType
from warnings import catch_warnings

from .faults import *
from .fields import ArgumentKind
from .tokens import numeric
from .utils import *


def _string(text):
    return text


def _number(text):
    """
    int for integral literals, float otherwise.

    only plain ASCII decimal literals are accepted (the same rule that decides
    whether a "-"-prefixed token is a number): no padding, underscores, nan/inf
    or non-ASCII digits.
    """
    if not numeric(text):
        raise ValueError("not a number: %r" % text)
    try:
        return int(text)
    except ValueError:
        return float(text)


def _boolean(text=Unset):
    # flags carry no text: presence is the value
    if text is Unset:
        return True
    raise ValueError("flags do not take a value")


COERCIONS = MappingProxyType({
    ArgumentKind.STRING: _string,
    ArgumentKind.NUMBER: _number,
    ArgumentKind.BOOLEAN: _boolean,
})


def _delegate(field, token, callable, value):
    """
    call a user hook and re-issue its warnings with field context.
    """
    with catch_warnings(record=True) as warnings:
        result = callable(value)
    for warning in map(lambda warning: warning.message, warnings):
        trigger(DelegatedWarning(
            "hook of argument %r raised a warning at %s position: %s" % (field.id, ordinal(token.index), warning),
            title="delegated warning",
            code=FaultCode.DELEGATED_WARNING,
            field=field.id,
            token=token.text,
            index=token.index,
            warning=warning,
            hint="check the value given to %r" % field.id,
            docs=getdoc(FaultCode.DELEGATED_WARNING),
        ))
    return result


def coerce(field, text, token, /):
    """
    convert raw 'text' for 'field'; 'token' is the surface token it came from.

    returns the typed value; raises InvalidValueError, DelegatedError or
    RejectedValueError.
    """
    if field.parse:
        try:
            value = _delegate(field, token, field.parse, text)
        except Exception as exception:
            trigger(DelegatedError(
                "cannot parse %r for argument %r at %s position" % (text, field.id, ordinal(token.index)),
                title="parse hook failed",
                code=FaultCode.DELEGATED_ERROR,
                field=field.id,
                token=token.text,
                index=token.index,
                exception=exception,
                hint=str(exception) or "check the value given to %r" % field.id,
                docs=getdoc(FaultCode.DELEGATED_ERROR),
            ))
    else:
        try:
            value = COERCIONS[ArgumentKind(field.type or ArgumentKind.BOOLEAN)](text)
        except ValueError as exception:
            trigger(InvalidValueError(
                "expecting %s for argument %r at %s position (got %r)" % (field.hint, field.id, ordinal(token.index), text),
                title="invalid value",
                code=FaultCode.INVALID_VALUE,
                field=field.id,
                token=token.text,
                index=token.index,
                exception=exception,
                hint="use a valid %s for %r" % (str(field.type or "value"), field.id),
                docs=getdoc(FaultCode.INVALID_VALUE),
            ))

    if field.validate:
        try:
            accepted = _delegate(field, token, field.validate, value)
        except Exception as exception:
            accepted, reason = False, exception
        else:
            reason = None
        if accepted is False:
            trigger(RejectedValueError(
                "value %r rejected for argument %r at %s position" % (value, field.id, ordinal(token.index)),
                title="rejected value",
                code=FaultCode.REJECTED_VALUE,
                field=field.id,
                token=token.text,
                index=token.index,
                value=value,
                exception=reason,
                hint=str(reason) if reason else "check the constraints of %r" % field.id,
                docs=getdoc(FaultCode.REJECTED_VALUE),
            ))

    return value


__all__ = (
    "COERCIONS",
    "coerce",
)
