r"""
Option defaults registry.

Every "Options:" block of a doc text declares flags, one per entry:

    Options:
      -h --help            show this screen
      -o FILE, --out=FILE  write to FILE [default: out.txt]
      --speed=<kn>         speed in knots
                           [default: 10]

An entry starts on a line whose first non-blank character is '-' and absorbs the
continuation lines below it. The declaration part (before the first run of two or
more blanks) names a short flag, a long flag and an optional argument placeholder;
the description part may carry a "[default: VALUE]" annotation.

The registry is consulted by the grammar compiler (to resolve the arity of flags
mentioned by name in the usage) and by the argv tokenizer (to resolve arity and
canonical identity of live flags).
"""
import re
from collections import namedtuple

from .faults import *
from .sections import parse_section


class OptionSpec(namedtuple("OptionSpec", ("short", "long", "argcount", "default"), defaults=(None, None, 0, None))):
    """
    Canonical option descriptor.

    Fields
    - short: "-x" or None
    - long: "--xyz" or None
    - argcount: 0 (presence-only flag) or 1 (takes a value)
    - default: the "[default: ...]" string of a value-bearing option, or None

    The identity key is the long flag when present, else the short flag.
    """
    __slots__ = ()

    @property
    def key(self):
        return self.long or self.short


def parse_option(source, /):
    """
    Parse one options entry into an OptionSpec.

    Examples
    - "-h"                          → OptionSpec("-h", None, 0, None)
    - "-h, --help"                  → OptionSpec("-h", "--help", 0, None)
    - "--path=<path>  [default: ./]"→ OptionSpec(None, "--path", 1, "./")
    - "-v LEVEL  verbosity"         → OptionSpec("-v", None, 1, None)

    A "[default: ...]" on a presence-only flag is ignored with a DefaultIgnoredWarning.
    """
    if not isinstance(source, str):
        raise TypeError("parse_option() argument must be a string")

    declaration, *description = re.split(r"[ \t]{2,}", source.strip(), maxsplit=1)
    description = description[0] if description else ""

    short = long = None
    argcount = 0
    for word in declaration.replace(",", " ").replace("=", " ").split():
        if word.startswith("--"):
            long = word
        elif word.startswith("-"):
            short = word
        else:
            argcount = 1

    default = None
    if matched := re.search(r"\[default: (.*)\]", description, re.IGNORECASE):
        if argcount:
            default = matched[1]
        else:
            trigger(DefaultIgnoredWarning(
                "default value %r of flag %r is ignored, flags take no value" % (matched[1], long or short),
                title="default ignored",
                code=FaultCode.DEFAULT_IGNORED,
                hint="add an argument placeholder (e.g. %s=<value>) or drop the annotation" % (long or short),
                docs=getdoc(FaultCode.DEFAULT_IGNORED)
            ))

    return OptionSpec(short, long, argcount, default)


def parse_defaults(doc, /):
    """
    Collect the OptionSpec of every entry of every "Options:" block of `doc`.

    Returns
    - tuple[OptionSpec, ...] in declaration order; duplicates are kept so that
      references to them can be reported as ambiguous.
    """
    defaults = []
    for section in parse_section("options:", doc):
        _, _, section = section.partition(":")
        pieces = re.split(r"\n[ \t]*(-\S+?)", "\n" + section)[1:]
        for flag, rest in zip(pieces[::2], pieces[1::2]):
            defaults.append(parse_option(flag + rest))
    return tuple(defaults)


__all__ = (
    "OptionSpec",
    "parse_option",
    "parse_defaults",
)
