"""
Fault layer tests.

Scope
- FaultCode grouping and host relabeling through __main__.__codes__.
- Exception/warning contracts: message, read-only options, __replace__, trigger().
- rich rendering (plain and fancy), program name and style overrides.
- getdoc() lookups through __main__.__docs__.
"""
import unittest
import warnings
from unittest import TestCase
from unittest.mock import patch

from rich.console import Console

from argvschema.faults import *


def render(fault, **options):
    console = Console(color_system=None, force_terminal=False, width=120)
    with console.capture() as capture:
        console.print(fault.__replace__(**options) if options else fault)
    return capture.get()


class TestFaultCode(TestCase):
    """Stable codes."""

    def testDomains(self):
        self.assertEqual(FaultCode.UNKNOWN_PROPERTY // 100, 101)
        self.assertEqual(FaultCode.UNKNOWN_OPTION // 1000, 11)
        self.assertEqual(FaultCode.MISSING_ARGUMENTS // 100, 112)
        self.assertEqual(FaultCode.EMPTY_INLINE_VALUE // 1000, 12)

    def testNormalizeDefault(self):
        self.assertEqual(FaultCode.UNKNOWN_OPTION.normalize(), "11111")

    def testNormalizeHostCodes(self):
        with patch("__main__.__codes__", {FaultCode.UNKNOWN_OPTION: "E-OPT"}, create=True):
            self.assertEqual(FaultCode.UNKNOWN_OPTION.normalize(), "E-OPT")


class TestExceptions(TestCase):
    """Exception contract."""

    def testMessageAndOptions(self):
        error = UnknownOptionError("unknown option '--x' at first position", token="--x")
        self.assertEqual(str(error), "unknown option '--x' at first position")
        self.assertEqual(error.token, "--x")
        with self.assertRaises(AttributeError):
            error.missing
        with self.assertRaises(TypeError):
            error.options["token"] = "--y"

    def testReplaceMergesOptions(self):
        error = UnknownOptionError("message", token="--x")
        replaced = error.__replace__(index=1)
        self.assertIsInstance(replaced, UnknownOptionError)
        self.assertEqual(dict(replaced.options), {"token": "--x", "index": 1})
        self.assertEqual(dict(error.options), {"token": "--x"})

    def testTriggerRaises(self):
        with self.assertRaises(MissingValueError) as context:
            trigger(MissingValueError("missing STRING"), field="name")
        self.assertEqual(context.exception.field, "name")
        self.assertIsNone(context.exception.__cause__)

    def testTriggerRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))

    def testFamilies(self):
        self.assertTrue(issubclass(IdConflictError, SchemaException))
        self.assertTrue(issubclass(DelegatedError, ParseException))
        self.assertTrue(issubclass(MissingArgumentsError, ValidationException))
        self.assertTrue(issubclass(SchemaException, ArgvException))


class TestWarnings(TestCase):
    """Warning contract."""

    def testTriggerWarns(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            trigger(EmptyInlineValueWarning("empty inline value"), field="name")
        self.assertEqual(len(caught), 1)
        self.assertIsInstance(caught[0].message, EmptyInlineValueWarning)
        self.assertEqual(caught[0].message.options["field"], "name")

    def testWarningsCanBeErrors(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", ArgvWarning)
            with self.assertRaises(DelegatedWarning):
                trigger(DelegatedWarning("hook warned"))


class TestRendering(TestCase):
    """rich output."""

    error = UnknownArgumentError(
        "unknown argument 'b' at second position",
        title="unknown argument",
        code=FaultCode.UNKNOWN_ARGUMENT,
        hint="remove it",
    )

    def testPlain(self):
        with patch("__main__.__prog__", "tool", create=True):
            output = render(self.error)
        self.assertIn("[ tool — 11121 | Unknown Argument ]", output)
        self.assertIn("unknown argument 'b' at second position", output)
        self.assertIn("→ remove it", output)

    def testFancyPanel(self):
        with patch("__main__.__prog__", "tool", create=True):
            output = render(self.error, fancy=True)
        self.assertIn("Unknown Argument", output)
        self.assertIn("unknown argument 'b' at second position", output)

    def testNotColorful(self):
        with patch("__main__.__prog__", "tool", create=True):
            output = render(self.error, colorful=False)
        self.assertIn("unknown argument 'b' at second position", output)

    def testWarningRenders(self):
        warning = EmptyInlineValueWarning("empty inline value", title="empty inline value", hint="add a value")
        with patch("__main__.__prog__", "tool", create=True):
            output = render(warning)
        self.assertIn("Empty Inline Value", output)
        self.assertIn("add a value", output)

    def testStyleOverride(self):
        with patch("__main__.__styles__", {"message": "bold red"}, create=True):
            renderable = self.error.__rich__()
        self.assertEqual(renderable.renderables[1].style, "bold red")


class TestGetdoc(TestCase):
    """Host documentation lookups."""

    def testMissing(self):
        self.assertIsNone(getdoc(FaultCode.ID_CONFLICT))

    def testHostDocs(self):
        with patch("__main__.__docs__", {FaultCode.ID_CONFLICT: "two fields share a switch"}, create=True):
            self.assertEqual(getdoc(FaultCode.ID_CONFLICT), "two fields share a switch")

    def testRejectsNonCode(self):
        with self.assertRaises(TypeError):
            getdoc(10102)


if __name__ == "__main__":
    unittest.main()
