"""
Matching engine: one structural-recursion function over the pattern union.

State is threaded, never shared: `leftover` is a tuple of the tokens not yet
consumed and `bindings` a read-only mapping rebuilt on every write, so a failing
branch simply returns the state it received and a compiled pattern can be matched
against any number of argument vectors, concurrently or not.

Node semantics
- Option: the first token with the same flag identity.
- Argument: the first untyped token.
- Command: the first untyped token, only if it spells the command name.
- Required: every child in order, or nothing at all.
- Optional / OptionsShortcut: every child that matches; never fails.
- Either: every child from the same state; the fewest leftover tokens win,
  ties go to the first declared child.
- Repeatable: the child again and again until it fails or stops consuming.

Accumulation follows the binding table (see patterns.typify): SCALAR binds the
first match, COUNT adds one per match and LIST appends every matched value.
"""
from collections import namedtuple
from types import MappingProxyType

from .patterns import *

EMPTY = MappingProxyType({})


class Outcome(namedtuple("Outcome", ("matched", "leftover", "bindings"))):
    """
    (matched, leftover, bindings) returned by every match() call.
    """
    __slots__ = ()


def _single_match(pattern, leftover):
    """
    Return (index, value) of the token `pattern` consumes, or (None, None).
    """
    for index, token in enumerate(leftover):
        match pattern:
            case Option() if isinstance(token, Option) and token.name == pattern.name:
                return index, token.value
            case Argument() if isinstance(token, Argument):
                return index, token.value
            case Command() if isinstance(token, Argument):
                # a command only looks at the first positional token
                return (index, True) if token.value == pattern.name else (None, None)
    return None, None


def _bind(pattern, value, bindings, slots):
    name = pattern.name
    accumulation = slots[name].accumulation if name in slots else Accumulation.SCALAR
    match accumulation:
        case Accumulation.COUNT:
            value = bindings.get(name, 0) + 1
        case Accumulation.LIST:
            value = [*bindings.get(name, ()), *(value if isinstance(value, list) else [value])]
        case Accumulation.SCALAR if name in bindings:
            return bindings
    return MappingProxyType({**bindings, name: value})


def match(pattern, leftover, bindings=EMPTY, /, slots=EMPTY):
    """
    Match `pattern` against `leftover` tokens, threading `bindings`.

    Parameters
    - pattern: a pattern node.
    - leftover: iterable of tokenized leaves (see argv.parse_argv).
    - bindings: mapping of names bound so far (never mutated).
    - slots: binding table from patterns.typify(); names missing from it bind as SCALAR.

    Returns
    - Outcome(matched, leftover, bindings). On failure, leftover and bindings are
      exactly the ones received.
    """
    leftover = tuple(leftover)
    match pattern:
        case Leaf():
            index, value = _single_match(pattern, leftover)
            if index is None:
                return Outcome(False, leftover, bindings)
            return Outcome(True, leftover[:index] + leftover[index + 1:], _bind(pattern, value, bindings, slots))

        case Required(children):
            state = leftover, bindings
            for child in children:
                matched, *state = match(child, *state, slots=slots)
                if not matched:
                    return Outcome(False, leftover, bindings)
            return Outcome(True, *state)

        case Optional(children) | OptionsShortcut(children):
            state = leftover, bindings
            for child in children:
                _, *state = match(child, *state, slots=slots)
            return Outcome(True, *state)

        case Either(children):
            outcomes = [
                outcome for child in children
                if (outcome := match(child, leftover, bindings, slots=slots)).matched
            ]
            if not outcomes:
                return Outcome(False, leftover, bindings)
            return min(outcomes, key=lambda outcome: len(outcome.leftover))

        case Repeatable(children):
            state = leftover, bindings
            times = 0
            while True:
                matched, *progress = match(children[0], *state, slots=slots)
                if not matched:
                    break
                times += 1
                stalled = len(progress[0]) == len(state[0])
                state = progress
                if stalled:
                    break
            if not times:
                return Outcome(False, leftover, bindings)
            return Outcome(True, *state)

    raise TypeError("match() first argument must be a pattern node")


__all__ = (
    "Outcome",
    "match",
)
