"""
Argv tokenizer: the live argument vector → ordered leaf tokens.

    ["-v", "--out=x", "ship", "--", "-n"]
    → [Option('-v', None, 0, True), Option(None, '--out', 1, 'x'),
       Argument(None, 'ship'), Argument(None, '--'), Argument(None, '-n')]

Rules, left to right
- "--": itself and every following token become untyped arguments.
- "--long[=value]": resolved by exact name, then by unique prefix.
- "-abc": resolved flag by flag; a valued flag ends the cluster.
- options_first: the first positional token turns the rest into arguments.
- anything else: an untyped argument.

Bad options (ambiguous prefixes, missing or unexpected values) do not stop the
tokenizer: their fault takes the place of the leaf and is reported only if the
whole invocation fails to match.
"""
from collections.abc import Iterable

from .patterns import Argument
from .tokens import Tokens, parse_long, parse_shorts


def _rest(tokens):
    return [Argument(None, tokens.move()) for _ in range(len(tokens))]


def parse_argv(argv, options, options_first=False, /):
    """
    Tokenize `argv` against the registry `options`.

    Parameters
    - argv: iterable of strings (kept verbatim, empty strings included).
    - options: iterable of OptionSpec; it is copied, so flags first seen in argv
      never leak into the caller's registry.
    - options_first: stop option parsing at the first positional token.

    Returns
    - list of Option/Argument leaves, with UserSyntaxError faults in place of
      unresolvable options.
    """
    if isinstance(argv, str) or not isinstance(argv, Iterable):
        raise TypeError("parse_argv() first argument must be an iterable of strings")
    argv = list(argv)
    if not all(isinstance(item, str) for item in argv):
        raise TypeError("parse_argv() first argument must be an iterable of strings")
    tokens = Tokens.from_argv(argv)
    options = list(options)
    parsed = []
    while (token := tokens.current()) is not None:
        if token == "--":
            return parsed + _rest(tokens)
        elif token.startswith("--"):
            parsed += parse_long(tokens, options)
        elif token.startswith("-") and token != "-":
            parsed += parse_shorts(tokens, options)
        elif options_first:
            return parsed + _rest(tokens)
        else:
            parsed.append(Argument(None, tokens.move()))
    return parsed


__all__ = (
    "parse_argv",
)
