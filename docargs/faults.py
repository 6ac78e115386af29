"""
Docargs faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every issue the package can
  surface. Codes are grouped by domain (grammar authoring, live invocation, warnings).
- GrammarFormatError / UserSyntaxError / DocargsWarning: base types that carry
  message + options and know how to render themselves in a friendly, lowercased way.
- trigger(): central entry point to surface any fault with its runtime context.
- getdoc(): optional description lookup for a code from the host application.

Two disjoint error kinds
- grammar format errors describe a defect in the doc text itself. They are always
  raised, whatever the parser's exit setting is.
- user syntax errors describe an argument vector that does not fit a valid grammar.
  When triggered they are rendered to stderr and the process exits with their status.
  Parsers running with exit=False never trigger them and return a failed result instead.

UX goals
- Position-first messages for live arguments (“at second position”).
- Short titles, one-sentence bodies, a single clear hint, then the usage text.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).
"""
import copy
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - grammar format errors (21xxx)
      • MISSING_USAGE_SECTION, DUPLICATED_USAGE_SECTION (sections)
      • UNMATCHED_BRACKET, UNEXPECTED_ENDING (pattern structure)
      • AMBIGUOUS_DECLARATION, FLAG_DECLARATION, MISSING_DECLARED_ARGUMENT (option references)
    - user syntax errors (22xxx)
      • AMBIGUOUS_OPTION, FLAG_ASSIGNMENT, OPTION_VALUE_REQUIRED (tokenizing)
      • UNPARSED_TOKENS, USAGE_MISMATCH (matching)
      • UNREADABLE_DOC (command line front end)
    - warnings (23xxx)
      • DEFAULT_IGNORED

    normalize() lets the host remap codes to custom labels while keeping them stable.
    """
    # --- grammar format errors (21xxx) ---
    MISSING_USAGE_SECTION       = 21101
    DUPLICATED_USAGE_SECTION    = 21102
    UNMATCHED_BRACKET           = 21111
    UNEXPECTED_ENDING           = 21112
    AMBIGUOUS_DECLARATION       = 21121
    FLAG_DECLARATION            = 21122
    MISSING_DECLARED_ARGUMENT   = 21123

    # --- user syntax errors (22xxx) ---
    AMBIGUOUS_OPTION            = 22111
    FLAG_ASSIGNMENT             = 22112
    OPTION_VALUE_REQUIRED       = 22113
    UNPARSED_TOKENS             = 22121
    USAGE_MISMATCH              = 22122
    UNREADABLE_DOC              = 22131

    # --- warnings (23xxx) ---
    DEFAULT_IGNORED             = 23111

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to override
        numeric ids with friendlier labels; otherwise the numeric value is used.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, title, body):
    """
    internal: build the rich renderable shared by every fault kind.

    layout
    - header: "[ prog — code | Title ]"
    - body: message, then " → hint" when a hint is present
    - usage: appended verbatim when the fault carries one
    - fancy=True frames the body (and usage) in a left-titled panel.
    """
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", False)

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

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

    header = Text.assemble(
        "[ ",
        text(getattr(main, "__prog__", options.get("prog", "docargs")), styler("prog-name")),
        " — ",
        text(options["code"].normalize() if "code" in options else "?", styler("code")),
        " | ",
        text(options.get("title", type(fault).__name__).title(), styler(title)),
        " ]"
    )
    renders = [text(fault.message, styler(body))]
    if hint := options.get("hint"):
        renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))
    if usage := options.get("usage"):
        renders.append(Text(""))
        renders.append(text(usage, styler("usage")))

    if options.get("fancy", False):
        return Panel(Group(*renders), title=header, title_align="left")

    return Group(header, *renders)


class DocargsException(Exception):
    """
    base of every docargs error: a lowercased message plus a read-only options map.

    options (all optional)
    - title, code, hint, docs: fault description
    - prog, usage, colorful, fancy: rendering context, merged in by trigger()
    - index, token: where in the argument vector the fault was detected
    """
    status = 1

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message if self.message is not Unset else ""

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",

            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
            "usage": "#9CA3AF",  # reminder below the hint
        }, "error-title", "error-message")

    def __trigger__(self) -> None:
        raise self from None

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class GrammarFormatError(DocargsException):
    """
    the doc text cannot be compiled: an authoring defect, fatal at start-up.
    """


class UserSyntaxError(DocargsException):
    """
    the argument vector does not satisfy a valid grammar: expected and recoverable.
    """

    def __trigger__(self) -> None:
        console.print(self, soft_wrap=True)
        sys.exit(self.status)


class MissingUsageError(GrammarFormatError): ...
class DuplicatedUsageError(GrammarFormatError): ...
class UnmatchedBracketError(GrammarFormatError): ...
class UnexpectedEndingError(GrammarFormatError): ...
class AmbiguousDeclarationError(GrammarFormatError): ...
class FlagDeclarationError(GrammarFormatError): ...
class MissingDeclaredArgumentError(GrammarFormatError): ...

class AmbiguousOptionError(UserSyntaxError): ...
class FlagAssignmentError(UserSyntaxError): ...
class OptionValueRequiredError(UserSyntaxError): ...
class UnparsedTokensError(UserSyntaxError): ...
class UsageMismatchError(UserSyntaxError): ...
class UnreadableDocError(UserSyntaxError): ...


class DocargsWarning(Warning):
    """
    base of every docargs warning: non-fatal authoring issues found while compiling.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",  # amber: not fatal
            "warning-title": "bold #FFC2E0",

            "warning-message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        }, "warning-title", "warning-message")

    def __trigger__(self) -> None:
        warnings.warn(self, stacklevel=len(inspect.stack()))

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DefaultIgnoredWarning(DocargsWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace() before triggering.
    - grammar format errors raise, user syntax errors print and exit, warnings warn.

    typical options
    - prog, usage, colorful, fancy: rendering context.
    - title, code, hint, docs: fault description overrides.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys are
    FaultCode instances and values are short documentation strings; None otherwise.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "DocargsException",
    "GrammarFormatError",
    "UserSyntaxError",
    "MissingUsageError",
    "DuplicatedUsageError",
    "UnmatchedBracketError",
    "UnexpectedEndingError",
    "AmbiguousDeclarationError",
    "FlagDeclarationError",
    "MissingDeclaredArgumentError",
    "AmbiguousOptionError",
    "FlagAssignmentError",
    "OptionValueRequiredError",
    "UnparsedTokensError",
    "UsageMismatchError",
    "UnreadableDocError",
    "DocargsWarning",
    "DefaultIgnoredWarning",
    "FaultCode",
    "trigger",
    "getdoc",
)
