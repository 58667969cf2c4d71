"""
Parsing of `pacman -Qi` package records.

A record is a block of `Key : Value` lines. Structural keys (name, dependency
lists, installed size) are lifted into PackageInfo fields; everything else is
kept verbatim in `PackageInfo.other`.
"""

import math
from enum import Enum
from typing import NamedTuple

from rich.console import Console

from pacmap.config import is_none_marker_dropped, is_verbose_enabled
from pacmap.errors import MalformedRecordError

console = Console()

KEY_SEPARATOR = " : "
NONE_MARKER = "None"

NAME_KEY = "Name"
DEPENDS_KEY = "Depends On"
REQUIRED_BY_KEY = "Required By"
SIZE_KEY = "Installed Size"
OPTIONAL_KEY = "Optional Deps"

# Keys whose values pacman wraps onto indented lines when writing to a terminal
WRAPPED_LIST_KEYS = (DEPENDS_KEY, REQUIRED_BY_KEY)


class SizeUnit(str, Enum):
    """Unit rank of an installed size."""

    BYTES = "B"
    KIB = "KiB"
    MIB = "MiB"
    GIB = "GiB"

    @property
    def factor(self) -> float:
        return 1024.0 ** list(SizeUnit).index(self)


class PackageSize(NamedTuple):
    """An installed size, ordered across units by normalising to bytes."""

    value: float
    unit: SizeUnit = SizeUnit.BYTES

    @classmethod
    def parse(cls, text: str) -> "PackageSize":
        """
        Parse a size such as "10.00 KiB".

        Raises:
            ValueError: If the number is not finite or the unit is not
                recognised.
        """
        parts = text.split()
        if len(parts) < 2:
            raise ValueError(f"Unexpected size format: {text!r}")
        value = float(parts[0])
        if not math.isfinite(value):
            raise ValueError(f"Non-finite size: {text!r}")
        return cls(value, SizeUnit(parts[1]))

    def to_bytes(self) -> float:
        return self.value * self.unit.factor

    def __eq__(self, other):
        if not isinstance(other, PackageSize):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __ne__(self, other):
        if not isinstance(other, PackageSize):
            return NotImplemented
        return self.to_bytes() != other.to_bytes()

    def __hash__(self):
        return hash(self.to_bytes())

    def __lt__(self, other):
        if not isinstance(other, PackageSize):
            return NotImplemented
        return self.to_bytes() < other.to_bytes()

    def __le__(self, other):
        if not isinstance(other, PackageSize):
            return NotImplemented
        return self.to_bytes() <= other.to_bytes()

    def __gt__(self, other):
        if not isinstance(other, PackageSize):
            return NotImplemented
        return self.to_bytes() > other.to_bytes()

    def __ge__(self, other):
        if not isinstance(other, PackageSize):
            return NotImplemented
        return self.to_bytes() >= other.to_bytes()

    def __str__(self) -> str:
        unit = "Bytes" if self.unit is SizeUnit.BYTES else self.unit.value
        return f"{self.value:g} {unit}"


class OptionalDep(NamedTuple):
    """An optional dependency and the reason pacman gives for it."""

    package_name: str
    reason: str

    @classmethod
    def parse(cls, text: str) -> "OptionalDep":
        """
        Parse "name: reason".

        Raises:
            ValueError: If there is no ": " separator.
        """
        package_name, sep, reason = text.partition(": ")
        if not sep:
            raise ValueError(f"Unexpected optional dependency format: {text!r}")
        return cls(package_name.strip(), reason)


class PackageInfo(NamedTuple):
    """Parsed metadata of one installed package."""

    depends: list[str]
    optional: list[OptionalDep]
    required_by: list[str]
    size: PackageSize
    other: dict[str, str]

    @property
    def version(self) -> str | None:
        return self.other.get("Version")

    @property
    def description(self) -> str | None:
        return self.other.get("Description")


def _split_names(value: str, drop_none_marker: bool) -> list[str]:
    names = value.split()
    if drop_none_marker:
        names = [name for name in names if name != NONE_MARKER]
    return names


def parse_package_info(
    text: str, drop_none_marker: bool | None = None
) -> tuple[str, PackageInfo]:
    """
    Parse a single `pacman -Qi` record.

    Args:
        text: The record text.
        drop_none_marker: Filter the literal "None" token out of dependency
            lists. Defaults to the configured behaviour (keep it).

    Returns:
        Tuple of (package name, PackageInfo).

    Raises:
        MalformedRecordError: If Name, Depends On, Required By or Installed
            Size is missing, or the size cannot be parsed.
    """
    if drop_none_marker is None:
        drop_none_marker = is_none_marker_dropped()

    other: dict[str, str] = {}
    optional: list[OptionalDep] = []
    last_key: str | None = None

    for line in text.splitlines():
        if not line:
            continue
        key, sep, value = line.partition(KEY_SEPARATOR)
        if sep:
            key = key.strip()
            last_key = key
            if key == OPTIONAL_KEY:
                try:
                    optional.append(OptionalDep.parse(value))
                except ValueError:
                    pass  # "None" when there are no optional deps
            else:
                other[key] = value
        elif last_key in WRAPPED_LIST_KEYS:
            other[last_key] = f"{other[last_key]} {line.strip()}"
        else:
            try:
                optional.append(OptionalDep.parse(line))
            except ValueError:
                continue

    name = other.pop(NAME_KEY, None)
    if name is None:
        raise MalformedRecordError(None, f"Missing '{NAME_KEY}' in record:\n{text}")
    name = name.strip()

    missing = [
        key for key in (DEPENDS_KEY, REQUIRED_BY_KEY, SIZE_KEY) if key not in other
    ]
    if missing:
        raise MalformedRecordError(
            name, f"Missing {', '.join(missing)} in record for '{name}'"
        )

    depends = _split_names(other.pop(DEPENDS_KEY), drop_none_marker)
    required_by = _split_names(other.pop(REQUIRED_BY_KEY), drop_none_marker)
    raw_size = other.pop(SIZE_KEY)
    try:
        size = PackageSize.parse(raw_size)
    except ValueError as e:
        raise MalformedRecordError(
            name, f"Invalid {SIZE_KEY} {raw_size!r} for '{name}'"
        ) from e

    return name, PackageInfo(
        depends=depends,
        optional=optional,
        required_by=required_by,
        size=size,
        other=other,
    )


def parse_package_info_batch(
    text: str, strict: bool = False, drop_none_marker: bool | None = None
) -> dict[str, PackageInfo]:
    """
    Parse the concatenated output of `pacman -Qi` for many packages.

    Records are separated by a blank line. Later records with the same name
    overwrite earlier ones.

    Args:
        text: Concatenated records.
        strict: Re-raise on the first malformed record instead of skipping it.
        drop_none_marker: See parse_package_info.

    Returns:
        Mapping of package name to PackageInfo.
    """
    packages: dict[str, PackageInfo] = {}
    for record in text.strip().split("\n\n"):
        if not record.strip():
            continue
        try:
            name, info = parse_package_info(record, drop_none_marker=drop_none_marker)
        except MalformedRecordError as e:
            if strict:
                raise
            if is_verbose_enabled():
                console.print(f"[dim]Skipping malformed record: {e}[/dim]")
            continue
        packages[name] = info
    return packages
