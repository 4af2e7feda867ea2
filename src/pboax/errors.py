from typing import Any, Container, NoReturn, Type, TypeVar

from typing_extensions import Protocol

Ordered = TypeVar("Ordered", bound="SupportsLessEqual")


class SupportsLessEqual(Protocol):
    def __le__(self, other: Any) -> bool:
        pass  # pragma: no cover


class PboError(Exception):
    """Base error for all errors in the library."""


class PboParseError(PboError):
    """An error when parsing the archive structure."""


class InvalidVersionMarker(PboParseError):
    """The first header is not a version header."""


class MalformedHeader(PboParseError):
    """A header record could not be decoded."""


class TruncatedHeader(MalformedHeader):
    """The stream ended inside a header record."""


class UnterminatedString(PboParseError):
    """The stream ended before a zero terminator."""


class UnterminatedPropertyTable(PboParseError):
    """The stream ended before the empty property key."""


class UnterminatedDirectory(PboParseError):
    """The stream ended before the empty filename sentinel."""


class TruncatedArchive(PboParseError):
    """The data blob or checksum runs past the end of the archive."""


class TrailingData(PboParseError):
    """Data follows the checksum."""


class PboExtractError(PboError):
    """An error when extracting a member."""


class MemberNotFound(PboExtractError):
    pass


class TruncatedMember(PboExtractError):
    pass


def _fail(  # pylint: disable=too-many-arguments
    error_class: Type[PboError],
    name: str,
    actual: Any,
    operator: str,
    expected: Any,
    offset: int,
) -> NoReturn:
    raise error_class(f"{name}: {actual!r} {operator} {expected!r} (at {offset})")


def assert_eq(
    name: str,
    expected: Any,
    actual: Any,
    offset: int,
    error_class: Type[PboError] = PboParseError,
) -> None:
    if actual != expected:
        _fail(error_class, name, actual, "==", expected, offset)


def assert_le(
    name: str,
    expected: Ordered,
    actual: Ordered,
    offset: int,
    error_class: Type[PboError] = PboParseError,
) -> None:
    if not actual <= expected:
        _fail(error_class, name, actual, "<=", expected, offset)


def assert_in(
    name: str,
    expected: Container[Any],
    actual: Any,
    offset: int,
    error_class: Type[PboError] = PboParseError,
) -> None:
    if actual not in expected:
        _fail(error_class, name, actual, "in", expected, offset)
