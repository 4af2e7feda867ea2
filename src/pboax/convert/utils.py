"""Argument types and logging for the ``pboax`` command."""
from argparse import ArgumentTypeError
from logging.config import dictConfig
from pathlib import Path
from typing import Optional


def input_pbo(arg: str) -> Path:
    try:
        path = Path(arg).resolve(strict=True)
    except OSError as e:
        raise ArgumentTypeError(f"cannot open {arg!r}: {e.strerror}") from e
    if not path.is_file():
        raise ArgumentTypeError(f"not a file: {arg!r}")
    return path


def output_path(arg: str) -> Path:
    path = Path(arg)
    if not path.parent.is_dir():
        raise ArgumentTypeError(f"directory does not exist: {str(path.parent)!r}")
    return path.parent.resolve() / path.name


def output_resolve(input_path: Path, output: Optional[Path], suffix: str) -> Path:
    """Name the output after the input, if no file name was given."""
    filename = input_path.with_suffix(suffix).name
    if output is None:
        return Path.cwd() / filename
    if output.is_dir():
        return output / filename
    return output


def configure_logging(verbose: bool = False) -> None:
    # stdout is reserved for command output, e.g. listings
    dictConfig(
        {
            "version": 1,
            "formatters": {
                "cli": {"format": "%(levelname)-8s %(name)s: %(message)s"},
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "formatter": "cli",
                    "stream": "ext://sys.stderr",
                },
            },
            "loggers": {
                "pboax": {
                    "level": "DEBUG" if verbose else "INFO",
                    "handlers": ["stderr"],
                    "propagate": False,
                },
            },
            "disable_existing_loggers": False,
        }
    )
