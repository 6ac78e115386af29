"""
Tests for the matching engine.

Scope
- Leaf matching: options by identity, arguments by position, commands by spelling.
- Branch semantics: Required rollback, Optional, Either tie-break, Repeatable.
- Accumulation driven by the binding table (scalar, count, list).
- Threaded state: inputs are never mutated, failures return them untouched.

Conventions
- Test method names follow CamelCase per project convention.
- Tokens are built by hand as the argv tokenizer would produce them.
"""
import unittest
from unittest import TestCase

from docargs.matching import *
from docargs.patterns import *


def flag(short=None, long=None):
    return Option(short, long, 0, True)


def token(value):
    return Argument(None, value)


class TestLeaves(TestCase):
    """
    One token consumed per leaf.
    """

    def testOption(self):
        self.assertEqual(match(Option("-a"), [flag("-a")]), (True, (), {"-a": True}))
        self.assertEqual(match(Option("-a"), [flag("-x")]), (False, (flag("-x"),), {}))
        self.assertEqual(match(Option("-a"), [token("-a")]), (False, (token("-a"),), {}))

    def testOptionByLongName(self):
        outcome = match(Option("-a", "--all"), [flag("-x"), flag("-a", "--all")])
        self.assertEqual(outcome, (True, (flag("-x"),), {"--all": True}))

    def testValuedOption(self):
        outcome = match(Option(None, "--out", 1), [Option(None, "--out", 1, "file")])
        self.assertEqual(outcome.bindings, {"--out": "file"})

    def testArgument(self):
        self.assertEqual(match(Argument("N"), [token(9)]), (True, (), {"N": 9}))
        self.assertEqual(match(Argument("N"), [flag("-x")]), (False, (flag("-x"),), {}))
        self.assertEqual(
            match(Argument("N"), [flag("-x"), flag("-a"), token(5)]),
            (True, (flag("-x"), flag("-a")), {"N": 5})
        )

    def testCommand(self):
        self.assertEqual(match(Command("c"), [token("c")]), (True, (), {"c": True}))
        self.assertEqual(match(Command("c"), [flag("-x"), token("c")]), (True, (flag("-x"),), {"c": True}))
        self.assertEqual(match(Command("c"), [token("x")]), (False, (token("x"),), {}))

    def testCommandOnlyLooksAtFirstPositional(self):
        tokens = (flag("-x"), token("x"), token("c"))
        self.assertEqual(match(Command("c"), tokens), (False, tokens, {}))

    def testRejectsNonNode(self):
        with self.assertRaises(TypeError):
            match("N", [])


class TestBranches(TestCase):
    """
    Combinator semantics.
    """

    def testRequired(self):
        self.assertEqual(match(Required(Option("-a")), [flag("-a")]), (True, (), {"-a": True}))
        self.assertEqual(match(Required(Option("-a")), []), (False, (), {}))
        self.assertEqual(
            match(Required(Option("-a"), Option("-x")), [flag("-a")]),
            (False, (flag("-a"),), {})
        )

    def testRequiredRollsBackBindings(self):
        bindings = {"seen": True}
        outcome = match(Required(Argument("N"), Command("go")), [token("x")], bindings)
        self.assertFalse(outcome.matched)
        self.assertIs(outcome.bindings, bindings)
        self.assertEqual(outcome.leftover, (token("x"),))

    def testOptional(self):
        self.assertEqual(match(Optional(Option("-a")), [flag("-a")]), (True, (), {"-a": True}))
        self.assertEqual(match(Optional(Option("-a")), []), (True, (), {}))
        self.assertEqual(match(Optional(Option("-a")), [flag("-x")]), (True, (flag("-x"),), {}))
        self.assertEqual(
            match(Optional(Option("-a"), Option("-b")), [flag("-b"), flag("-x")]),
            (True, (flag("-x"),), {"-b": True})
        )

    def testOptionsShortcutBehavesAsOptional(self):
        self.assertEqual(
            match(OptionsShortcut(Option("-a"), Option("-b")), [flag("-b")]),
            (True, (), {"-b": True})
        )
        self.assertEqual(match(OptionsShortcut(), [token("x")]), (True, (token("x"),), {}))

    def testEither(self):
        self.assertEqual(match(Either(Option("-a"), Option("-b")), [flag("-a")]), (True, (), {"-a": True}))
        self.assertEqual(
            match(Either(Option("-a"), Option("-b")), [flag("-a"), flag("-b")]),
            (True, (flag("-b"),), {"-a": True})
        )
        self.assertEqual(match(Either(Option("-a"), Option("-b")), [flag("-x")]), (False, (flag("-x"),), {}))

    def testEitherPrefersFewestLeftover(self):
        self.assertEqual(
            match(Either(Argument("M"), Required(Argument("N"), Argument("M"))), [token(1), token(2)]),
            (True, (), {"N": 1, "M": 2})
        )

    def testEitherTieGoesToFirst(self):
        self.assertEqual(
            match(Either(Argument("first"), Argument("second")), [token("x")]).bindings,
            {"first": "x"}
        )

    def testRepeatable(self):
        slots = typify(Required(Repeatable(Argument("N"))))
        self.assertEqual(
            match(Repeatable(Argument("N")), [token(1), token(2), token(3)], slots=slots),
            (True, (), {"N": [1, 2, 3]})
        )
        self.assertEqual(match(Repeatable(Argument("N")), [flag("-x")], slots=slots), (False, (flag("-x"),), {}))

    def testRepeatableCounts(self):
        slots = typify(Required(Repeatable(Option("-v"))))
        self.assertEqual(
            match(Repeatable(Option("-v")), [flag("-v"), token("x"), flag("-v")], slots=slots),
            (True, (token("x"),), {"-v": 2})
        )

    def testRepeatableStopsWhenStalled(self):
        self.assertEqual(match(Repeatable(Optional(Argument("N"))), []), (True, (), {}))

    def testRepeatableOfRequired(self):
        pattern = Repeatable(Required(Argument("N"), Argument("M")))
        slots = typify(Required(pattern))
        self.assertEqual(
            match(pattern, [token(1), token(2), token(3), token(4), token(5)], slots=slots),
            (True, (token(5),), {"N": [1, 3], "M": [2, 4]})
        )


class TestAccumulation(TestCase):
    """
    Bindings follow the binding table.
    """

    def testScalarFirstMatchWins(self):
        self.assertEqual(
            match(Required(Argument("N"), Argument("N")), [token("a"), token("b")]),
            (True, (), {"N": "a"})
        )

    def testCountAndListAcrossSequence(self):
        pattern = Required(Option("-v"), Option("-v"), Argument("N"), Argument("N"))
        outcome = match(pattern, [flag("-v"), flag("-v"), token("a"), token("b")], slots=typify(pattern))
        self.assertEqual(outcome.bindings, {"-v": 2, "N": ["a", "b"]})

    def testInputsAreNotMutated(self):
        pattern = Required(Repeatable(Argument("N")))
        slots = typify(pattern)
        bindings = {"N": ["z"]}
        tokens = [token("a"), token("b")]
        outcome = match(pattern, tokens, bindings, slots=slots)
        self.assertEqual(outcome.bindings, {"N": ["z", "a", "b"]})
        self.assertEqual(bindings, {"N": ["z"]})
        self.assertEqual(tokens, [token("a"), token("b")])

    def testBindingsAreReadOnly(self):
        outcome = match(Argument("N"), [token("a")])
        with self.assertRaises(TypeError):
            outcome.bindings["N"] = "b"

    def testReusablePattern(self):
        pattern = Required(Repeatable(Argument("N")))
        slots = typify(pattern)
        first = match(pattern, [token("a")], slots=slots)
        second = match(pattern, [token("b"), token("c")], slots=slots)
        self.assertEqual(first.bindings, {"N": ["a"]})
        self.assertEqual(second.bindings, {"N": ["b", "c"]})


if __name__ == "__main__":
    unittest.main()
