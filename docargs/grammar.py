"""
Grammar compiler: doc text → immutable, fixed-up Grammar.

Usage expressions follow this micro-grammar (tokens are blank-separated words,
with "( ) [ ] | ..." standalone and "<...>" placeholders kept whole):

    expr     ::= sequence ('|' sequence)*
    sequence ::= (atom '...'?)*
    atom     ::= '(' expr ')' | '[' expr ']' | 'options'
               | long-option | short-option-cluster
               | '<name>' | ALLCAPS-token | literal-token

Mapping
- "( ... )" → Required, "[ ... ]" → Optional, "options" → OptionsShortcut
- "--long", "-abc" → Option leaves resolved against the registry
- "<name>" / "NAME" → Argument, any other word → Command
- "atom ..." → Repeatable; alternatives of several atoms are wrapped in Required

compile() chains the whole pipeline (sections, registry, pattern, options shortcut
resolution, fix-up) and caches the result per doc text; a Grammar holds no live
state and can serve any number of invocations.
"""
import functools
from collections import namedtuple

from .faults import *
from .matching import match
from .patterns import *
from .registry import parse_defaults
from .sections import formal_usage, usage_section
from .tokens import Tokens, parse_long, parse_shorts


def parse_pattern(source, options, /):
    """
    Compile a formal usage expression into a Required root.

    Parameters
    - source: the formal usage expression (see sections.formal_usage).
    - options: mutable list of OptionSpec; options met only in the usage are appended.

    Raises
    - GrammarFormatError subclasses on unbalanced brackets, trailing tokens and
      bad option references.
    """
    tokens = Tokens.from_pattern(source)
    result = _parse_expr(tokens, options)
    if tokens.current() is not None:
        trigger(UnexpectedEndingError(
            "unexpected ending of the usage pattern: %r" % " ".join(tokens),
            title="unexpected ending",
            code=FaultCode.UNEXPECTED_ENDING,
            hint="check for a stray ')' or ']' in the usage section",
            docs=getdoc(FaultCode.UNEXPECTED_ENDING)
        ))
    return Required(*result)


def _alternative(sequence):
    return [Required(*sequence)] if len(sequence) > 1 else sequence


def _parse_expr(tokens, options):
    sequence = _parse_seq(tokens, options)
    if tokens.current() != "|":
        return sequence
    result = _alternative(sequence)
    while tokens.current() == "|":
        tokens.move()
        result += _alternative(_parse_seq(tokens, options))
    return [Either(*result)] if len(result) > 1 else result


def _parse_seq(tokens, options):
    result = []
    while tokens.current() not in (None, "]", ")", "|"):
        atom = _parse_atom(tokens, options)
        if tokens.current() == "...":
            tokens.move()
            atom = [Repeatable(*atom)] if len(atom) == 1 else [Repeatable(Required(*atom))]
        result += atom
    return result


def _parse_atom(tokens, options):
    token = tokens.current()
    match token:
        case "(" | "[":
            tokens.move()
            closing, branch = {"(": (")", Required), "[": ("]", Optional)}[token]
            result = branch(*_parse_expr(tokens, options))
            if tokens.move() != closing:
                trigger(UnmatchedBracketError(
                    "unmatched %r in the usage pattern" % token,
                    title="unmatched bracket",
                    code=FaultCode.UNMATCHED_BRACKET,
                    hint="close every %r with a matching %r" % (token, closing),
                    docs=getdoc(FaultCode.UNMATCHED_BRACKET)
                ))
            return [result]
        case "options":
            tokens.move()
            return [OptionsShortcut()]
        case _ if token.startswith("--") and token != "--":
            return parse_long(tokens, options)
        case _ if token.startswith("-") and token not in ("-", "--"):
            return parse_shorts(tokens, options)
        case _ if token.startswith("<") and token.endswith(">") or token.isupper():
            return [Argument(tokens.move())]
        case _:
            return [Command(tokens.move())]


def resolve_shortcuts(pattern, registry, /):
    """
    Fill every OptionsShortcut of `pattern` with the registry options the rest of
    the pattern does not mention (one leaf per option key, declaration order).
    """
    referenced = {leaf.name for leaf in flat(pattern, Option)}
    unreferenced = {}
    for spec in registry:
        if spec.key not in referenced:
            unreferenced.setdefault(spec.key, Option.from_spec(spec))

    def resolve(node):
        match node:
            case OptionsShortcut():
                return OptionsShortcut(*unreferenced.values())
            case Leaf():
                return node
            case Repeatable(children):
                return Repeatable(resolve(children[0]))
            case Branch(children):
                return type(node)(*map(resolve, children))

    return resolve(pattern)


class Grammar(namedtuple("Grammar", ("doc", "usage", "registry", "pattern", "slots"))):
    """
    A compiled doc text.

    Fields
    - doc: the doc text (placeholders already substituted)
    - usage: the raw usage section, shown alongside errors
    - registry: tuple of OptionSpec from the options sections, then the ones
      met only in the usage pattern
    - pattern: the fixed-up pattern tree
    - slots: binding table (name → Slot), in result order
    """
    __slots__ = ()

    def match(self, leaves, /):
        """
        Match tokenized leaves against the pattern with a fresh bindings state.
        """
        return match(self.pattern, leaves, slots=self.slots)

    def assemble(self, bindings, /):
        """
        Build the result mapping: every declared name, bound or defaulted.
        """
        result = {}
        for name, slot in self.slots.items():
            value = bindings[name] if name in bindings else slot.default
            result[name] = list(value) if isinstance(value, list) else value
        return result


@functools.cache
def compile(doc, /):
    """
    Compile `doc` into a Grammar (cached per doc text).

    Raises
    - TypeError when doc is not a string.
    - GrammarFormatError subclasses when the doc text is malformed.
    """
    if not isinstance(doc, str):
        raise TypeError("compile() argument must be a string")
    usage = usage_section(doc)
    declared = parse_defaults(doc)
    registry = list(declared)
    pattern = parse_pattern(formal_usage(usage), registry)
    pattern = unify(resolve_shortcuts(pattern, declared))
    return Grammar(doc, usage, tuple(registry), pattern, typify(pattern))


__all__ = (
    "parse_pattern",
    "resolve_shortcuts",
    "Grammar",
    "compile",
)
