"""
Section extraction for doc texts.

A doc text is free-form prose; only two kinds of blocks carry meaning:
- the single "Usage:" block, listing every legal invocation form;
- any number of "Options:" blocks, declaring flags, arities and defaults.

A block starts at any line containing its label (case-insensitive, anywhere in the
line) and runs over every immediately following line that starts with a blank.

Example
    >>> parse_section("usage:", "Usage: prog [-v]\\n       prog serve\\n\\nOther text")
    ['Usage: prog [-v]\\n       prog serve']
    >>> formal_usage("Usage: prog [-v]\\n       prog serve")
    '( [-v] ) | ( serve )'
"""
import functools
import os
import re
import sys

from .faults import *

PLACEHOLDER = "{:cmd:}"


@functools.cache
def _section_regex(name):
    return re.compile(
        r"^([^\n]*" + re.escape(name) + r"[^\n]*\n?(?:[ \t].*?(?:\n|$))*)",
        re.IGNORECASE | re.MULTILINE
    )


def parse_section(name, source, /):
    """
    Return every block whose heading line contains `name`, each stripped.

    Parameters
    - name: the label to look for, e.g. "usage:" or "options:".
    - source: the doc text.

    Returns
    - list[str] in document order (possibly empty).
    """
    if not isinstance(name, str) or not isinstance(source, str):
        raise TypeError("parse_section() arguments must be strings")
    return [section.strip() for section in _section_regex(name).findall(source)]


def usage_section(doc, /):
    """
    Return the one and only usage block of `doc`.

    Raises
    - MissingUsageError when the doc has no "usage:" block.
    - DuplicatedUsageError when it has more than one.
    """
    match parse_section("usage:", doc):
        case [usage]:
            return usage
        case []:
            trigger(MissingUsageError(
                "the doc text has no usage section",
                title="missing usage section",
                code=FaultCode.MISSING_USAGE_SECTION,
                hint="start a line with 'Usage:' followed by the program name",
                docs=getdoc(FaultCode.MISSING_USAGE_SECTION)
            ))
        case sections:
            trigger(DuplicatedUsageError(
                "the doc text has %d usage sections, expected exactly one" % len(sections),
                title="duplicated usage section",
                code=FaultCode.DUPLICATED_USAGE_SECTION,
                hint="merge every invocation form under a single 'Usage:' label",
                docs=getdoc(FaultCode.DUPLICATED_USAGE_SECTION)
            ))


def formal_usage(section, /):
    """
    Reduce a usage block to one formal expression.

    The first word after the label is the program name. It is dropped, and every
    later occurrence of it starts a new alternative:

        "Usage: prog [-hv] ARG\\n       prog N M"  →  "( [-hv] ARG ) | ( N M )"
    """
    _, _, section = section.partition(":")
    program, *words = section.split() or [""]
    return "( " + " ".join(") | (" if word == program else word for word in words) + " )"


def progname():
    """
    Return the invoking program's name.

    Honors a __prog__ attribute on __main__ and otherwise falls back to the
    basename of sys.argv[0].
    """
    main = __import__("__main__")
    if isinstance(prog := getattr(main, "__prog__", None), str):
        return prog
    return os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "docargs"


def substitute(doc, prog=None, /):
    """
    Replace every "{:cmd:}" placeholder of `doc` with the program name.
    """
    if PLACEHOLDER not in doc:
        return doc
    return doc.replace(PLACEHOLDER, prog if prog is not None else progname())


__all__ = (
    "parse_section",
    "usage_section",
    "formal_usage",
    "progname",
    "substitute",
)
