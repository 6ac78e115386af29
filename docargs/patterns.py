"""
Pattern nodes and the fix-up passes applied to a freshly compiled grammar.

Node union (closed, all classes are final)
- Leaves
  • Option(short, long, argcount, value): a flag; `value` is the default in a grammar
    and the live value (True or a string) in a tokenized argument vector.
  • Argument(name, value): a positional placeholder ("<file>", "FILE"); untyped
    tokens of the argument vector are Argument(None, raw).
  • Command(name, value): a literal word that must appear verbatim.
- Branches
  • Required(*children): all children, in order, or nothing.
  • Optional(*children): every child that can match; never fails.
  • Either(*children): the alternative leaving the fewest tokens behind.
  • Repeatable(child): one or more applications of the child.
  • OptionsShortcut(*children): the "[options]" keyword; behaves as Optional.

Nodes are immutable values: equality and hashing follow type and fields, so
grammars can be compared structurally and shared freely between invocations.

Fix-up
- unify(): equal leaves become one shared instance.
- typify(): names that may occur more than once within one alternative become
  count-typed (flags, commands) or list-typed (arguments, valued options); the
  result is the binding table (name → Slot) driving accumulation while matching.
"""
import enum
import functools
import operator
from collections import Counter, namedtuple
from types import MappingProxyType
from typing import final


class Pattern:
    """
    Base of the node union: structural equality, hashing and representations.

    Subclasses list their fields in __match_args__; a node never changes after
    construction.
    """
    __slots__ = ()
    __match_args__ = ()

    def __init__(self, *fields):
        for name, value in zip(self.__match_args__, fields, strict=True):
            object.__setattr__(self, name, value)

    def __setattr__(self, name, value, /):
        raise AttributeError("pattern nodes are immutable")

    def __delattr__(self, name, /):
        raise AttributeError("pattern nodes are immutable")

    def __fields__(self):
        return tuple(getattr(self, name) for name in self.__match_args__)

    def __eq__(self, other, /):
        if type(self) is not type(other):
            return NotImplemented
        return self.__fields__() == other.__fields__()

    def __hash__(self):
        return hash((type(self), self.__fields__()))

    def __rich_repr__(self):
        yield from zip(self.__match_args__, self.__fields__())

    def __repr__(self):
        return f"{type(self).__name__}({", ".join(map(repr, self.__fields__()))})"


class Leaf(Pattern):
    """
    Common base of Option, Argument and Command: a node binding one name.
    """
    __slots__ = ()


class Branch(Pattern):
    """
    Common base of the combinators: a node over an ordered tuple of children.
    """
    __slots__ = ("children",)
    __match_args__ = ("children",)

    def __init__(self, *children):
        for child in children:
            if not isinstance(child, Pattern):
                raise TypeError(f"{type(self).__name__} children must be pattern nodes")
        super().__init__(children)

    def __rich_repr__(self):
        yield from self.children

    def __repr__(self):
        return f"{type(self).__name__}({", ".join(map(repr, self.children))})"


@final
class Option(Leaf):
    __slots__ = ("short", "long", "argcount", "value")
    __match_args__ = ("short", "long", "argcount", "value")

    def __init__(self, short=None, long=None, argcount=0, value=False):
        if short is None and long is None:
            raise TypeError("Option must specify at least a short or a long flag")
        if argcount not in (0, 1):
            raise ValueError("Option 'argcount' must be 0 or 1")
        # a valued option without default holds None, never False
        super().__init__(short, long, argcount, None if value is False and argcount else value)

    @classmethod
    def from_spec(cls, spec, /):
        """
        Build the grammar leaf of a registry descriptor (its default as value).
        """
        return cls(spec.short, spec.long, spec.argcount, spec.default if spec.argcount else False)

    @property
    def name(self):
        return self.long or self.short


@final
class Argument(Leaf):
    __slots__ = ("name", "value")
    __match_args__ = ("name", "value")

    def __init__(self, name, value=None):
        super().__init__(name, value)


@final
class Command(Leaf):
    __slots__ = ("name", "value")
    __match_args__ = ("name", "value")

    def __init__(self, name, value=False):
        super().__init__(name, value)


@final
class Required(Branch):
    __slots__ = ()


@final
class Optional(Branch):
    __slots__ = ()


@final
class Either(Branch):
    __slots__ = ()


@final
class OptionsShortcut(Branch):
    __slots__ = ()


@final
class Repeatable(Branch):
    __slots__ = ()

    def __init__(self, child):
        super().__init__(child)

    @property
    def child(self):
        return self.children[0]


def flat(pattern, /, *types):
    """
    Return the leaves of `pattern` in depth-first order.

    With `types`, return instead every node (leaf or branch) of those types,
    without descending into matching nodes.
    """
    if types and isinstance(pattern, types):
        return [pattern]
    match pattern:
        case Leaf():
            return [] if types else [pattern]
        case Branch(children):
            return [node for child in children for node in flat(child, *types)]
    raise TypeError("flat() argument must be a pattern node")


def rebuild(pattern, function, /):
    """
    Return a copy of `pattern` whose leaves are replaced by function(leaf).
    """
    match pattern:
        case Leaf():
            return function(pattern)
        case Repeatable(children):
            return Repeatable(rebuild(children[0], function))
        case Branch(children):
            return type(pattern)(*(rebuild(child, function) for child in children))
    raise TypeError("rebuild() argument must be a pattern node")


def unify(pattern, /):
    """
    Return `pattern` with every group of equal leaves collapsed into one instance.
    """
    canonical = {}
    for leaf in flat(pattern):
        canonical.setdefault(leaf, leaf)
    return rebuild(pattern, canonical.__getitem__)


class Accumulation(enum.Enum):
    """
    how repeated matches of one name combine into its binding.
    """
    SCALAR = "scalar"  # first match wins
    COUNT = "count"    # each match adds one
    LIST = "list"      # each match appends its value


class Slot(namedtuple("Slot", ("name", "accumulation", "default"))):
    """
    One entry of the binding table: a declared name, its accumulation and default.
    """
    __slots__ = ()


def _occurrences(pattern):
    """
    Upper bound of occurrences of each name within a single alternative.
    """
    match pattern:
        case Leaf():
            return Counter({pattern.name: 1})
        case Either(children):
            return functools.reduce(operator.or_, map(_occurrences, children), Counter())
        case Repeatable(children):
            return (occurrences := _occurrences(children[0])) + occurrences
        case Branch(children):
            return sum(map(_occurrences, children), Counter())
    raise TypeError("pattern node expected")


def _slot(leaf, repeated):
    if not repeated:
        return Slot(leaf.name, Accumulation.SCALAR, leaf.value)
    match leaf:
        case Argument() | Option(argcount=1):
            default = leaf.value.split() if isinstance(leaf.value, str) else []
            return Slot(leaf.name, Accumulation.LIST, default)
        case Command() | Option(argcount=0):
            return Slot(leaf.name, Accumulation.COUNT, 0)


def typify(pattern, /):
    """
    Compute the binding table of `pattern`.

    A name is repeated when some alternative can mention it more than once
    (e.g. "[-vv]", "N N", "<file>..."). Repeated arguments and valued options
    accumulate into lists, repeated flags and commands into counts; everything
    else binds its first match.

    Returns
    - MappingProxyType[str, Slot] in first-appearance order.
    """
    occurrences = _occurrences(pattern)
    slots = {}
    for leaf in flat(pattern):
        if leaf.name not in slots:
            slots[leaf.name] = _slot(leaf, occurrences[leaf.name] > 1)
    return MappingProxyType(slots)


__all__ = (
    "Pattern",
    "Leaf",
    "Branch",
    "Option",
    "Argument",
    "Command",
    "Required",
    "Optional",
    "Either",
    "Repeatable",
    "OptionsShortcut",
    "Accumulation",
    "Slot",
    "flat",
    "rebuild",
    "unify",
    "typify",
)
