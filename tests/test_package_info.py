"""
Tests for pacman record parsing.
"""

import pytest

from conftest import BASH_RECORD, PACMAN_RECORD
from pacmap.errors import MalformedRecordError
from pacmap.package_info import (
    OptionalDep,
    PackageSize,
    SizeUnit,
    parse_package_info,
    parse_package_info_batch,
)

MINIMAL_RECORD = (
    "Name : foo\nDepends On : bar baz\nRequired By : None\nInstalled Size : 10.00 KiB\n"
)


class TestPackageSize:
    """Test size parsing and cross-unit ordering."""

    def test_ordering_across_units(self):
        assert PackageSize(1025.0, SizeUnit.BYTES) > PackageSize(1.0, SizeUnit.KIB)
        assert PackageSize(1025.0, SizeUnit.KIB) > PackageSize(1.0, SizeUnit.MIB)
        assert PackageSize(1.0, SizeUnit.MIB) > PackageSize(1.0, SizeUnit.KIB)
        assert PackageSize(1.0, SizeUnit.KIB) > PackageSize(1.0, SizeUnit.BYTES)

    def test_ordering_reversed_operands(self):
        assert PackageSize(1.0, SizeUnit.KIB) < PackageSize(1025.0, SizeUnit.BYTES)
        assert PackageSize(1.0, SizeUnit.MIB) < PackageSize(1025.0, SizeUnit.KIB)
        assert PackageSize(1.0, SizeUnit.BYTES) < PackageSize(1.0, SizeUnit.MIB)

    def test_equal_magnitude_in_different_units(self):
        kib = PackageSize(1.0, SizeUnit.KIB)
        b = PackageSize(1024.0, SizeUnit.BYTES)
        assert kib <= b
        assert kib >= b
        assert not kib < b

    def test_equality_and_hash_follow_bytes(self):
        kib = PackageSize(1.0, SizeUnit.KIB)
        b = PackageSize(1024.0, SizeUnit.BYTES)
        assert kib == b
        assert not kib != b
        assert hash(kib) == hash(b)
        assert len({kib, b}) == 1
        assert kib != PackageSize(1.0, SizeUnit.MIB)

    def test_parse(self):
        assert PackageSize.parse("4.80 MiB") == PackageSize(4.8, SizeUnit.MIB)
        assert PackageSize.parse("0.00 B") == PackageSize(0.0, SizeUnit.BYTES)
        assert PackageSize.parse("1.5 GiB").to_bytes() == 1.5 * 1024**3

    @pytest.mark.parametrize(
        "text", ["", "10", "ten KiB", "10 TB", "nan KiB", "inf MiB", "-inf B"]
    )
    def test_parse_invalid(self, text):
        with pytest.raises(ValueError):
            PackageSize.parse(text)

    def test_str(self):
        assert str(PackageSize(10.0, SizeUnit.KIB)) == "10 KiB"
        assert str(PackageSize(512.0, SizeUnit.BYTES)) == "512 Bytes"


class TestOptionalDep:
    def test_parse(self):
        dep = OptionalDep.parse("  base-devel: building packages [installed]")
        assert dep.package_name == "base-devel"
        assert dep.reason == "building packages [installed]"

    def test_parse_without_separator(self):
        with pytest.raises(ValueError):
            OptionalDep.parse("None")


class TestParsePackageInfo:
    """Test single-record parsing."""

    def test_minimal_record(self):
        name, info = parse_package_info(MINIMAL_RECORD)

        assert name == "foo"
        assert info.depends == ["bar", "baz"]
        assert info.size < PackageSize(1.0, SizeUnit.MIB)
        assert info.size > PackageSize(1.0, SizeUnit.BYTES)
        assert info.other == {}

    def test_none_marker_is_kept_by_default(self):
        _, info = parse_package_info(MINIMAL_RECORD)
        assert info.required_by == ["None"]

    def test_none_marker_can_be_dropped(self):
        _, info = parse_package_info(MINIMAL_RECORD, drop_none_marker=True)
        assert info.required_by == []
        assert info.depends == ["bar", "baz"]

    def test_full_record(self):
        name, info = parse_package_info(PACMAN_RECORD)

        assert name == "pacman"
        assert info.depends == ["bash", "glibc", "libarchive", "curl"]
        assert info.required_by == ["base", "devtools"]
        assert info.size == PackageSize(4.8, SizeUnit.MIB)
        assert info.version == "6.1.0-3"
        assert info.description.startswith("A library-based package manager")
        assert info.other["Optional For"] == "None"
        assert info.other["URL"] == "https://www.archlinux.org/pacman/"

    def test_structural_keys_removed_from_other(self):
        _, info = parse_package_info(PACMAN_RECORD)
        for key in ("Name", "Depends On", "Required By", "Installed Size", "Optional Deps"):
            assert key not in info.other

    def test_optional_deps_with_continuation_lines(self):
        _, info = parse_package_info(PACMAN_RECORD)

        assert info.optional == [
            OptionalDep(
                "perl-locale-gettext", "translation support in makepkg-template"
            ),
            OptionalDep("base-devel", "building packages [installed]"),
        ]

    def test_unparsable_continuation_line_is_dropped(self):
        record = MINIMAL_RECORD + "Optional Deps : None\n      no separator here\n"
        _, info = parse_package_info(record)
        assert info.optional == []

    def test_wrapped_depends_on(self):
        record = (
            "Name : foo\n"
            "Depends On : bar  baz\n"
            "             qux\n"
            "Required By : None\n"
            "Installed Size : 1.00 KiB\n"
        )
        _, info = parse_package_info(record)
        assert info.depends == ["bar", "baz", "qux"]

    def test_value_with_separator_inside(self):
        record = MINIMAL_RECORD + "Description : a : b\n"
        _, info = parse_package_info(record)
        assert info.other["Description"] == "a : b"

    @pytest.mark.parametrize(
        "missing", ["Name", "Depends On", "Required By", "Installed Size"]
    )
    def test_missing_structural_field(self, missing):
        record = "\n".join(
            line for line in MINIMAL_RECORD.splitlines() if not line.startswith(missing)
        )
        with pytest.raises(MalformedRecordError):
            parse_package_info(record)

    def test_unparsable_size(self):
        record = MINIMAL_RECORD.replace("10.00 KiB", "lots")
        with pytest.raises(MalformedRecordError) as exc_info:
            parse_package_info(record)
        assert exc_info.value.package == "foo"


    def test_non_finite_size(self):
        record = MINIMAL_RECORD.replace("10.00 KiB", "nan KiB")
        with pytest.raises(MalformedRecordError):
            parse_package_info(record)


class TestParsePackageInfoBatch:
    """Test parsing of concatenated records."""

    def test_two_records(self):
        packages = parse_package_info_batch(PACMAN_RECORD + "\n" + BASH_RECORD)

        assert set(packages) == {"pacman", "bash"}
        assert packages["bash"].depends == ["readline", "glibc", "ncurses"]

    def test_later_record_overwrites(self):
        newer = BASH_RECORD.replace("readline  glibc  ncurses", "glibc")
        packages = parse_package_info_batch(BASH_RECORD + "\n" + newer)

        assert len(packages) == 1
        assert packages["bash"].depends == ["glibc"]

    def test_malformed_record_is_skipped(self):
        broken = "Name : broken\nDepends On : None\n"
        packages = parse_package_info_batch(broken + "\n" + BASH_RECORD)
        assert list(packages) == ["bash"]

    def test_malformed_record_strict(self):
        broken = "Name : broken\nDepends On : None\n"
        with pytest.raises(MalformedRecordError):
            parse_package_info_batch(broken + "\n" + BASH_RECORD, strict=True)

    def test_empty_output(self):
        assert parse_package_info_batch("\n\n") == {}
