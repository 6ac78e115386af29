"""
Command line front end: evaluate an argument vector against a doc file.

    $ python -m docargs naval_fate.txt ship new Guardian
    {
        'ship': True,
        'new': True,
        '<name>': ['Guardian'],
        ...
    }
"""
from pathlib import Path

from rich.pretty import pprint

from docargs import __version__
from docargs.faults import FaultCode, UnreadableDocError, getdoc, trigger
from docargs.parser import docopt
from docargs.utils import Unset

__prog__ = "docargs"

usage = """
Evaluate an argument vector against the usage message of a doc file.

Usage:
  {:cmd:} [options] <docfile> [<argument>...]
  {:cmd:} (-h | --help)
  {:cmd:} --version

Options:
  -h --help             show this screen
  --version             show the docargs version
  --options-first       stop option parsing at the first positional argument
  --full-usage          show the whole doc text alongside errors
  --version-string=<v>  answer --version in the evaluated doc with <v>
  --no-help             do not intercept -h/--help in the evaluated doc
  --colorful            style the output
  --fancy               frame the output in panels
"""


def main(argv=Unset, /):
    """
    Parse our own arguments, then the forwarded ones against the doc file, and
    pretty-print the resulting bindings.
    """
    arguments = docopt(usage, argv, options_first=True, version=__version__)

    path = Path(arguments["<docfile>"])
    try:
        source = path.read_text(encoding="utf-8")
    except OSError as error:
        trigger(
            UnreadableDocError(
                f"cannot read doc file {str(path)!r}: {(error.strerror or str(error)).lower()}",
                title="unreadable doc",
                code=FaultCode.UNREADABLE_DOC,
                hint="check the path and its permissions",
                docs=getdoc(FaultCode.UNREADABLE_DOC)
            ),
            prog=__prog__,
            colorful=arguments["--colorful"],
            fancy=arguments["--fancy"]
        )

    result = docopt(
        source,
        arguments["<argument>"],
        options_first=arguments["--options-first"],
        help=not arguments["--no-help"],
        version=arguments["--version-string"],
        exit_full_usage=arguments["--full-usage"],
        colorful=arguments["--colorful"],
        fancy=arguments["--fancy"],
    )
    pprint(dict(result), expand_all=True)


if __name__ == "__main__":
    main()
