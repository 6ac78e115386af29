"""
Tests for faults: codes, triggering and rendering.

Scope
- FaultCode grouping and host normalization through __main__.__codes__.
- trigger(): contract check, option merging, raise / exit / warn per fault kind.
- getdoc(): host documentation lookup through __main__.__docs__.
- Rich rendering in plain and fancy modes.

Conventions
- Test method names follow CamelCase per project convention.
- Host hooks on __main__ are installed and removed within each test.
"""
import copy
import io
import unittest
import warnings
from contextlib import redirect_stderr
from unittest import TestCase

from rich.console import Console

from docargs.faults import *

main = __import__("__main__")


def render(renderable):
    console = Console(file=io.StringIO(), width=100, color_system=None)
    console.print(renderable, soft_wrap=True)
    return console.file.getvalue()


class TestFaultCode(TestCase):
    """
    Stable identifiers and host normalization.
    """

    def testGroups(self):
        for code in FaultCode:
            with self.subTest(code=code.name):
                self.assertIn(code.value // 1000, (21, 22, 23))

    def testNormalizeDefault(self):
        self.assertEqual(FaultCode.USAGE_MISMATCH.normalize(), "22122")

    def testNormalizeHostLabels(self):
        main.__codes__ = {FaultCode.USAGE_MISMATCH: "E-USAGE"}
        try:
            self.assertEqual(FaultCode.USAGE_MISMATCH.normalize(), "E-USAGE")
            self.assertEqual(FaultCode.UNPARSED_TOKENS.normalize(), "22121")
        finally:
            del main.__codes__


class TestGetdoc(TestCase):
    """
    Host documentation lookup.
    """

    def testMissing(self):
        self.assertIsNone(getdoc(FaultCode.UNMATCHED_BRACKET))

    def testHostDocs(self):
        main.__docs__ = {FaultCode.UNMATCHED_BRACKET: "brackets must balance"}
        try:
            self.assertEqual(getdoc(FaultCode.UNMATCHED_BRACKET), "brackets must balance")
        finally:
            del main.__docs__

    def testRejectsNonCode(self):
        with self.assertRaises(TypeError):
            getdoc(21111)


class TestTrigger(TestCase):
    """
    One entry point, three behaviors.
    """

    def testContract(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))

    def testGrammarFormatErrorRaises(self):
        fault = UnmatchedBracketError("unmatched '('", code=FaultCode.UNMATCHED_BRACKET)
        with self.assertRaises(UnmatchedBracketError) as context:
            trigger(fault, usage="Usage: prog (")
        self.assertIsNot(context.exception, fault)
        self.assertEqual(str(context.exception), "unmatched '('")
        self.assertEqual(context.exception.options["usage"], "Usage: prog (")
        self.assertIs(context.exception.options["code"], FaultCode.UNMATCHED_BRACKET)
        self.assertNotIn("usage", fault.options)

    def testUserSyntaxErrorExits(self):
        stderr = io.StringIO()
        fault = UsageMismatchError("no match", title="usage mismatch", code=FaultCode.USAGE_MISMATCH)
        with redirect_stderr(stderr), self.assertRaises(SystemExit) as context:
            trigger(fault, usage="Usage: prog run")
        self.assertEqual(context.exception.code, 1)
        self.assertIn("no match", stderr.getvalue())
        self.assertIn("Usage: prog run", stderr.getvalue())

    def testWarningWarns(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            trigger(DefaultIgnoredWarning("ignored", code=FaultCode.DEFAULT_IGNORED))
        self.assertEqual(len(caught), 1)
        self.assertIs(caught[0].category, DefaultIgnoredWarning)
        self.assertEqual(caught[0].message.message, "ignored")

    def testHierarchy(self):
        self.assertTrue(issubclass(MissingDeclaredArgumentError, GrammarFormatError))
        self.assertTrue(issubclass(OptionValueRequiredError, UserSyntaxError))
        self.assertTrue(issubclass(GrammarFormatError, DocargsException))
        self.assertFalse(issubclass(UserSyntaxError, GrammarFormatError))
        self.assertTrue(issubclass(UnreadableDocError, UserSyntaxError))
        self.assertTrue(issubclass(DefaultIgnoredWarning, Warning))


class TestRendering(TestCase):
    """
    Plain and fancy renderings carry the same information.
    """

    fault = AmbiguousOptionError(
        "option '--ver' at first position is not a unique prefix: --verbose, --version",
        title="ambiguous option",
        code=FaultCode.AMBIGUOUS_OPTION,
        hint="spell out the full option name",
        prog="prog",
        usage="Usage: prog [--version --verbose]",
    )

    def testPlain(self):
        output = render(self.fault)
        self.assertIn("22111", output)
        self.assertIn("Ambiguous Option", output)
        self.assertIn("not a unique prefix", output)
        self.assertIn("→ spell out the full option name", output)
        self.assertTrue(output.rstrip().endswith("Usage: prog [--version --verbose]"))

    def testFancy(self):
        output = render(copy.replace(self.fault, fancy=True, colorful=True))
        self.assertIn("Ambiguous Option", output)
        self.assertIn("spell out the full option name", output)
        self.assertIn("Usage: prog [--version --verbose]", output)

    def testStr(self):
        self.assertTrue(str(self.fault).startswith("option '--ver'"))
        self.assertEqual(str(UsageMismatchError()), "")


if __name__ == "__main__":
    unittest.main()
