"""
Token stream and expansion tests.

Scope
- TokenStream take/peek/push discipline and 1-based positions.
- Value expansion: quoted literals, comma lists.
- Long option splitting and condensed short-option resolution.
"""
import unittest
from unittest import TestCase

from argvschema import Schema, UnknownOptionError, FlagAssignmentError
from argvschema.tokens import *
from argvschema.utils import Unset


class TestTokenStream(TestCase):
    """Queue behaviour of one parse call."""

    def testPositionsAreOneBased(self):
        stream = TokenStream(["a", "b"])
        self.assertEqual(stream.take(), Token("a", 1))
        self.assertEqual(stream.take(), Token("b", 2))
        self.assertFalse(stream)

    def testPeekDoesNotConsume(self):
        stream = TokenStream(["a"])
        self.assertEqual(stream.peek().text, "a")
        self.assertEqual(len(stream), 1)

    def testPeekEmpty(self):
        self.assertIs(TokenStream().peek(), Unset)

    def testPushIsInlineAndFirst(self):
        stream = TokenStream(["--name", "next"])
        token = stream.take()
        stream.push("value", token.index)
        pushed = stream.take()
        self.assertEqual(pushed, Token("value", 1, True))
        self.assertTrue(pushed.inline)
        self.assertEqual(stream.take().text, "next")

    def testIterationDoesNotConsume(self):
        stream = TokenStream(["a", "b"])
        self.assertEqual([token.text for token in stream], ["a", "b"])
        self.assertEqual(len(stream), 2)


class TestExpansion(TestCase):
    """Quoted literals and comma lists."""

    def testCommaSplitForManyFields(self):
        self.assertEqual(expand("a,b,c", many=True), ["a", "b", "c"])

    def testNoSplitForSingleFields(self):
        self.assertEqual(expand("a,b"), ["a,b"])

    def testQuotedSuppressesSplit(self):
        self.assertEqual(expand('"a,b"', many=True), ["a,b"])
        self.assertEqual(expand("'a,b'", many=True), ["a,b"])

    def testQuotedSingleField(self):
        self.assertEqual(expand('"hello world"'), ["hello world"])

    def testUnquoteNeedsMatchingPair(self):
        self.assertEqual(unquote('"a\''), ('"a\'', False))
        self.assertEqual(unquote('"'), ('"', False))
        self.assertEqual(unquote('""'), ("", True))

    def testNumeric(self):
        self.assertTrue(numeric("-5"))
        self.assertTrue(numeric("-.5e3"))
        self.assertFalse(numeric("-x"))
        self.assertFalse(numeric("--"))
        self.assertFalse(numeric(" 5"))
        self.assertFalse(numeric("1_000"))
        self.assertFalse(numeric("\u0663"))


class TestSplitLong(TestCase):
    """--name=value splitting."""

    def testWithoutValue(self):
        self.assertEqual(split_long("--name"), ("--name", None))

    def testWithValue(self):
        self.assertEqual(split_long("--name=a=b"), ("--name", "a=b"))

    def testWithEmptyValue(self):
        self.assertEqual(split_long("--name="), ("--name", ""))


class TestSplitCluster(TestCase):
    """Condensed short options."""

    def setUp(self):
        self.schema = Schema(options={"all": {}, "brief": {}, "color": {"type": "string"}})

    def resolve(self, text):
        return [
            (spelling, option.id, value)
            for spelling, option, value in split_cluster(Token(text, 1), self.schema.switches)
        ]

    def testFlags(self):
        self.assertEqual(self.resolve("-ab"), [("-a", "all", Unset), ("-b", "brief", Unset)])

    def testValueTakingOptionSwallowsRest(self):
        self.assertEqual(self.resolve("-acred"), [("-a", "all", Unset), ("-c", "color", "red")])

    def testLeadingEqualsSkipped(self):
        self.assertEqual(self.resolve("-c=red"), [("-c", "color", "red")])

    def testValueTakingOptionAtEnd(self):
        self.assertEqual(self.resolve("-bc"), [("-b", "brief", Unset), ("-c", "color", Unset)])

    def testUnknownCharacter(self):
        with self.assertRaises(UnknownOptionError) as context:
            self.resolve("-axb")
        self.assertIn("'x'", str(context.exception))
        self.assertIn("'-axb'", str(context.exception))
        self.assertEqual(context.exception.input, "-x")

    def testEqualsAfterFlag(self):
        with self.assertRaises(FlagAssignmentError):
            self.resolve("-a=1")


if __name__ == "__main__":
    unittest.main()
