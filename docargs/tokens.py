"""
Token streams and option resolution shared by the grammar compiler and the argv tokenizer.

Both the usage pattern and the live argument vector spell options the same way
("--long", "--long=value", "-abc", "-ovalue"), so both are resolved here, against
the same registry, by parse_long() and parse_shorts().

What differs is the reaction to a bad reference, and that is decided by the
stream's ParseMode, passed explicitly with every stream:
- COMPILING_GRAMMAR: the doc text is broken; a GrammarFormatError is raised at once.
- TOKENIZING_ARGV: the user typed something wrong; the UserSyntaxError is returned
  in place of a leaf and travels with the tokens until matching decides whether
  the invocation fails.
"""
import enum
import re
from collections import deque

from .faults import *
from .patterns import Option
from .registry import OptionSpec
from .utils import ordinal


class ParseMode(enum.Enum):
    """
    which input a token stream carries.
    """
    COMPILING_GRAMMAR = "compiling-grammar"
    TOKENIZING_ARGV = "tokenizing-argv"


class Tokens(deque):
    """
    A consumable token stream bound to a ParseMode.

    `index` is the 1-based position of the last token taken with move(), used to
    point faults at the offending argument.
    """

    def __init__(self, source, mode, /):
        if not isinstance(mode, ParseMode):
            raise TypeError("Tokens() mode must be a parse-mode")
        super().__init__(source)
        self.mode = mode
        self.index = 0

    @classmethod
    def from_pattern(cls, source, /):
        """
        Split a formal usage expression: "( ) [ ] | ..." become standalone tokens,
        "<...>" placeholders stay whole (even with blanks inside).
        """
        source = re.sub(r"([\[\]()|]|\.\.\.)", r" \1 ", source)
        return cls([token for token in re.split(r"\s+|(\S*<.*?>)", source) if token], ParseMode.COMPILING_GRAMMAR)

    @classmethod
    def from_argv(cls, argv, /):
        return cls(argv, ParseMode.TOKENIZING_ARGV)

    def move(self):
        if not self:
            return None
        self.index += 1
        return self.popleft()

    def current(self):
        return self[0] if self else None


_FAULTS = {
    ParseMode.COMPILING_GRAMMAR: {
        "ambiguous": (AmbiguousDeclarationError, FaultCode.AMBIGUOUS_DECLARATION, "ambiguous option reference"),
        "assignment": (FlagDeclarationError, FaultCode.FLAG_DECLARATION, "flag declared with a value"),
        "missing": (MissingDeclaredArgumentError, FaultCode.MISSING_DECLARED_ARGUMENT, "missing option argument"),
    },
    ParseMode.TOKENIZING_ARGV: {
        "ambiguous": (AmbiguousOptionError, FaultCode.AMBIGUOUS_OPTION, "ambiguous option"),
        "assignment": (FlagAssignmentError, FaultCode.FLAG_ASSIGNMENT, "flag assignment"),
        "missing": (OptionValueRequiredError, FaultCode.OPTION_VALUE_REQUIRED, "option value required"),
    },
}


def _complain(tokens, kind, template, /, *, hint, **fields):
    """
    Build the fault of `kind` for the stream's mode; raise it while compiling.

    `template` is formatted with `fields` plus {where}: the argv position, or
    "in the usage pattern".
    """
    cls, code, title = _FAULTS[tokens.mode][kind]
    if tokens.mode is ParseMode.COMPILING_GRAMMAR:
        where = "in the usage pattern"
    else:
        where = "at %s position" % ordinal(max(tokens.index, 1))
    fault = cls(
        template.format(where=where, **fields),
        title=title,
        code=code,
        hint=hint,
        token=fields.get("token"),
        index=tokens.index,
        docs=getdoc(code)
    )
    if tokens.mode is ParseMode.COMPILING_GRAMMAR:
        trigger(fault)
    return fault


def _leaf(tokens, spec, value):
    """
    Grammar leaves carry the registry default; argv leaves carry what was typed.
    """
    if tokens.mode is ParseMode.COMPILING_GRAMMAR:
        return Option.from_spec(spec)
    return Option(spec.short, spec.long, spec.argcount, value if value is not None else True)


def parse_long(tokens, options, /):
    """
    Resolve one "--long" or "--long=value" token.

    resolution
    - exact long-flag match first; on the argv side, a unique prefix also resolves
      ("--verb" → "--verbose").
    - several candidates → ambiguous.
    - no candidate → a new descriptor is registered in `options` (arity 1 when
      written with "=", else 0).
    - a flag given "=value" → assignment fault; a valued option without value
      (end of input or "--" next) → missing-argument fault.

    Returns
    - list with one Option leaf, or one fault (argv mode only).
    """
    long, equals, value = tokens.move().partition("=")
    value = None if equals == value == "" else value

    similar = [spec for spec in options if spec.long == long]
    if tokens.mode is ParseMode.TOKENIZING_ARGV and not similar:
        similar = [spec for spec in options if spec.long and spec.long.startswith(long)]

    if len(similar) > 1:
        return [_complain(
            tokens,
            "ambiguous",
            "option {token!r} {where} is not a unique prefix: {choices}",
            token=long,
            choices=", ".join(sorted({spec.long for spec in similar})),
            hint="spell out the full option name"
        )]

    if not similar:
        spec = OptionSpec(None, long, 1 if equals == "=" else 0)
        options.append(spec)
        return [_leaf(tokens, spec, value if spec.argcount else True)]

    spec, = similar
    if spec.argcount == 0:
        if value is not None:
            return [_complain(
                tokens,
                "assignment",
                "flag {token!r} {where} must not have an argument",
                token=spec.long,
                hint="drop the '=%s' part, %s only toggles a switch" % (value, spec.long)
            )]
    elif value is None:
        if tokens.current() in (None, "--"):
            return [_complain(
                tokens,
                "missing",
                "option {token!r} {where} requires an argument",
                token=spec.long,
                hint="pass a value as '%s=<value>' or '%s <value>'" % (spec.long, spec.long)
            )]
        value = tokens.move()
    return [_leaf(tokens, spec, value)]


def parse_shorts(tokens, options, /):
    """
    Resolve one "-abc" cluster, flag by flag.

    A valued flag takes the rest of the cluster ("-ofile") or, when the cluster ends
    with it, the next token ("-o file"); either way the cluster stops there.
    Unknown flags are registered in `options` as presence-only flags.

    Returns
    - list of Option leaves; on the argv side a fault may replace the last one.
    """
    token = tokens.move()
    left = token.lstrip("-")
    parsed = []
    while left != "":
        short, left = "-" + left[0], left[1:]
        similar = [spec for spec in options if spec.short == short]

        if len(similar) > 1:
            parsed.append(_complain(
                tokens,
                "ambiguous",
                "flag {token!r} {where} is declared {count} times",
                token=short,
                count=len(similar),
                hint="declare %s once in the options section" % short
            ))
            break

        if not similar:
            spec = OptionSpec(short, None, 0)
            options.append(spec)
            parsed.append(_leaf(tokens, spec, True))
            continue

        spec, = similar
        value = None
        if spec.argcount != 0:
            if left == "":
                if tokens.current() in (None, "--"):
                    parsed.append(_complain(
                        tokens,
                        "missing",
                        "flag {token!r} {where} requires an argument",
                        token=short,
                        hint="pass a value as '%s<value>' or '%s <value>'" % (short, short)
                    ))
                    break
                value = tokens.move()
            else:
                value, left = left, ""
        parsed.append(_leaf(tokens, spec, value))
    return parsed


__all__ = (
    "ParseMode",
    "Tokens",
    "parse_long",
    "parse_shorts",
)
