import argparse
import sys
from typing import List, Optional

from ..errors import PboError
from .pbo import pbo_extract_subparser, pbo_list_subparser
from .utils import configure_logging


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="pboax")
    parser.add_argument("-v", "--verbose", action="store_true")

    def no_command(_args: argparse.Namespace) -> None:
        parser.print_help()

    parser.set_defaults(command=no_command)
    subparsers = parser.add_subparsers(dest="subparser_name")
    pbo_extract_subparser(subparsers)
    pbo_list_subparser(subparsers)

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        args.command(args)
    except PboError as e:
        sys.stderr.write(f"{args.input_pbo}: {e}\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
