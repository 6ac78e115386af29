r"""
Docargs parser: the public entry points.

Overview
- Parser: a reusable, validated configuration (options_first, help, version, exit,
  exit_full_usage, colorful, fancy) whose parse(doc, argv) runs the whole pipeline.
- docopt(doc, argv, **options): one-shot convenience over Parser.
- Result: read-only mapping of declared names to bound values, plus the outcome
  (success, status, message, usage).

Pipeline
    doc ──substitute "{:cmd:}"──► compile() ──► Grammar (cached per doc text)
    argv ──parse_argv()──► leaves ──► help/version? ──► Grammar.match() ──► Result

Outcomes
- success: status 0, bindings for every declared name.
- help (-h/--help, when help=True) or version (--version, when a version is set):
  status 0, the full doc or the version string as message, matching skipped.
- user syntax error: status 1, the violation followed by the usage section (or the
  whole doc with exit_full_usage=True).
- grammar format error: always raised, whatever `exit` says.

With exit=True (the default), help and version are printed to stdout and errors to
stderr through rich, then the process exits with the outcome's status.

Quick example:
    >>> from docargs import docopt
    >>> doc = '''
    ... Usage: ship new <name>...
    ...        ship move <name> [--speed=<kn>]
    ...
    ... Options:
    ...   --speed=<kn>  speed in knots [default: 10]
    ... '''
    >>> result = docopt(doc, "move Guardian", exit=False)
    >>> result["<name>"], result["--speed"]
    (['Guardian'], '10')
"""
import functools
import operator
import re
import shlex
import sys
from collections import defaultdict
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .argv import parse_argv
from .faults import *
from .grammar import compile
from .matching import EMPTY
from .patterns import Argument, Option
from .sections import progname, substitute
from .utils import *


class ParserType(type):
    """
    Metaclass exposing introspectable fields as read-only properties.

    - every name in __introspectable__ becomes mirror(name) over self._{name};
    - __typename__ is the hyphenated lowercase class name, used in diagnostics;
    - __repr__/__rich_repr__ list the introspectable fields.
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
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


class Result(Mapping):
    """
    Outcome of one parse: a read-only mapping over the bindings.

    Properties
    - success: True when status is 0 (a match, or a help/version request).
    - bindings: read-only view of name → bool | int | str | None | list[str].
    - status: 0 on success, the fault status otherwise.
    - message: empty on a match; the help/version payload or the usage-annotated
      diagnostic otherwise.
    - usage: the usage section of the doc text.
    """
    __slots__ = ("_bindings", "_status", "_message", "_usage")

    status = mirror("status")
    message = mirror("message")
    usage = mirror("usage")

    def __init__(self, bindings=EMPTY, /, *, status=0, message="", usage=""):
        if not isinstance(bindings, Mapping):
            raise TypeError("Result() bindings must be a mapping")
        if not isinstance(status, int) or isinstance(status, bool):
            raise TypeError("Result() status must be an integer")
        self._bindings = dict(bindings)
        self._status = status
        self._message = message
        self._usage = usage

    @property
    def success(self):
        return self._status == 0

    @property
    def bindings(self):
        return MappingProxyType(self._bindings)

    def __getitem__(self, name, /):
        return self._bindings[name]

    def __iter__(self):
        return iter(self._bindings)

    def __len__(self):
        return len(self._bindings)

    def __rich_repr__(self):
        yield "success", self.success
        yield "status", self._status
        yield "bindings", self._bindings
        if self._message:
            yield "message", self._message

    def __repr__(self):
        return f"result({", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))})"


def _tokens(argv):
    """
    Normalize the argument vector.

    - Unset: sys.argv[1:]
    - str: shell-like string, split via shlex.split
    - Iterable[str]: used verbatim (empty strings are legitimate values)
    """
    if argv is Unset:
        return sys.argv[1:]
    if isinstance(argv, str):
        return shlex.split(argv)
    if isinstance(argv, Iterable):
        tokens = list(argv)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("parse() argument must be a string or an iterable of strings")
        return tokens
    raise TypeError("parse() argument must be a string or an iterable of strings")


def _spell(token):
    match token:
        case Argument(_, value):
            return repr(value)
        case Option(argcount=1):
            return repr("%s=%s" % (token.name, token.value))
        case Option():
            return repr(token.name)
    return repr(str(token))


class Parser(metaclass=ParserType):
    """
    Reusable docopt-style parser configuration.

    Parameters (keyword-only)
    - options_first: stop option parsing at the first positional argument.
    - help: intercept -h/--help and answer with the full doc text.
    - version: when set, intercept --version and answer with str(version).
    - exit: print and terminate on help, version and user errors; when False, return
      a Result instead (grammar format errors are raised either way).
    - exit_full_usage: annotate errors with the full doc instead of the usage section.
    - colorful: style help, version and error output (see __main__.__styles__).
    - fancy: frame help, version and error output in panels.

    Raises
    - TypeError: when a flag is not a boolean or version is neither Unset, None nor a string.
    """
    __introspectable__ = (
        "options_first",
        "help",
        "version",
        "exit",
        "exit_full_usage",
        "colorful",
        "fancy",
    )

    def __init__(
            self,
            *,
            options_first=False,
            help=True,
            version=Unset,
            exit=True,
            exit_full_usage=False,
            colorful=False,
            fancy=False,
    ):
        for name, value in (
            ("options_first", options_first),
            ("help", help),
            ("exit", exit),
            ("exit_full_usage", exit_full_usage),
            ("colorful", colorful),
            ("fancy", fancy),
        ):
            if not isinstance(value, bool):
                raise TypeError(f"{type(self).__typename__} {name!r} must be a boolean")
        if not isinstance(version, str | Unset | None):
            raise TypeError(f"{type(self).__typename__} 'version' must be a string")
        if isinstance(version, str) and not (version := version.strip()):
            raise ValueError(f"{type(self).__typename__} 'version' cannot be empty")

        self._options_first = options_first
        self._help = help
        self._version = coalesce(version)
        self._exit = exit
        self._exit_full_usage = exit_full_usage
        self._colorful = colorful
        self._fancy = fancy

    def parse(self, doc, argv=Unset, /):
        """
        Parse `argv` against `doc`.

        Parameters
        - doc: the doc text; "{:cmd:}" is replaced by the program name.
        - argv: Unset (sys.argv[1:]), a shell-like string or an iterable of strings.

        Returns
        - Result (unless exit=True turned the outcome into process termination).

        Raises
        - GrammarFormatError subclasses when the doc text is malformed.
        - TypeError on a non-string doc or a malformed argv.
        """
        if not isinstance(doc, str):
            raise TypeError("parse() first argument must be a string")

        grammar = compile(substitute(doc))
        leaves = parse_argv(_tokens(argv), grammar.registry, self._options_first)

        if (result := self._specials(grammar, leaves)) is not None:
            return result

        matched, leftover, bindings = grammar.match(leaves)
        if matched and not leftover:
            return Result(grammar.assemble(bindings), usage=grammar.usage)

        # a fault deferred by the tokenizer explains the failure best
        for token in leftover:
            if isinstance(token, UserSyntaxError):
                return self._failure(grammar, token)

        if matched:
            fault = UnparsedTokensError(
                "unexpected %s in the arguments" % ", ".join(map(_spell, leftover)),
                title="unparsed tokens",
                code=FaultCode.UNPARSED_TOKENS,
                hint="remove the extra arguments or check the usage below",
                docs=getdoc(FaultCode.UNPARSED_TOKENS)
            )
        else:
            fault = UsageMismatchError(
                "the arguments do not match any usage form",
                title="usage mismatch",
                code=FaultCode.USAGE_MISMATCH,
                hint="compare your arguments with the usage below",
                docs=getdoc(FaultCode.USAGE_MISMATCH)
            )
        return self._failure(grammar, fault)

    def _specials(self, grammar, leaves):
        """
        Answer -h/--help and --version before matching; None when neither applies.
        """
        requested = {leaf.name for leaf in leaves if isinstance(leaf, Option) and leaf.value}
        if self._help and requested & {"-h", "--help"}:
            return self._notify(grammar, grammar.doc.strip(), "help")
        if self._version is not None and "--version" in requested:
            return self._notify(grammar, self._version, "version")
        return None

    def _render(self, payload, kind):
        """
        Build the renderable of a help or version payload.
        """
        styles = defaultdict(str, {
            "help": "#E5E7EB",  # light body text
            "version": "bold #00E6FF",  # cyan version string
            "panel-title": "bold #FF4D94",  # magenta title
        } | getattr(__import__("__main__"), "__styles__", {}))

        renderable = Text(payload, styles[kind] if self._colorful else "")
        if self._fancy:
            renderable = Panel(
                renderable,
                title=Text.assemble(
                    "[", " ", f"{progname()} {kind}".upper(), " ", "]",
                    style=styles["panel-title"] if self._colorful else ""
                ),
                title_align="left",
            )
        return renderable

    def _notify(self, grammar, payload, kind):
        if self._exit:
            Console().print(self._render(payload, kind), soft_wrap=True)
            sys.exit(0)
        return Result(status=0, message=payload, usage=grammar.usage)

    def _failure(self, grammar, fault):
        reminder = grammar.doc.strip() if self._exit_full_usage else grammar.usage
        if self._exit:
            trigger(fault, prog=progname(), usage=reminder, colorful=self._colorful, fancy=self._fancy)
        return Result(status=fault.status, message=(str(fault) + "\n" + reminder).strip(), usage=grammar.usage)


def docopt(doc, argv=Unset, /, **options):
    """
    Parse `argv` against `doc` in one call: Parser(**options).parse(doc, argv).

    See Parser for the accepted options and Parser.parse for the outcomes.
    """
    return Parser(**options).parse(doc, argv)


__all__ = (
    "Parser",
    "Result",
    "docopt",
)
