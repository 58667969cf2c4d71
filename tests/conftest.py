"""
Shared fixtures: sample pacman records and an in-memory package manager.
"""

import pytest

from pacmap import config
from pacmap.errors import PackageNotFoundError
from pacmap.external_tools.base import ExternalTool
from pacmap.package_info import PackageInfo, PackageSize, SizeUnit

PACMAN_RECORD = """\
Name            : pacman
Version         : 6.1.0-3
Description     : A library-based package manager with dependency support
Architecture    : x86_64
URL             : https://www.archlinux.org/pacman/
Licenses        : GPL-2.0-or-later
Groups          : None
Provides        : libalpm.so=14-64
Depends On      : bash  glibc  libarchive  curl
Optional Deps   : perl-locale-gettext: translation support in makepkg-template
                  base-devel: building packages [installed]
Required By     : base  devtools
Optional For    : None
Conflicts With  : None
Replaces        : None
Installed Size  : 4.80 MiB
Packager        : Levente Polyak <anthraxx@archlinux.org>
Build Date      : Sat 18 May 2024 09:12:01 PM CEST
Install Date    : Mon 20 May 2024 08:00:13 AM CEST
Install Reason  : Explicitly installed
Install Script  : No
Validated By    : Signature
"""

BASH_RECORD = """\
Name            : bash
Version         : 5.2.026-2
Description     : The GNU Bourne Again shell
Depends On      : readline  glibc  ncurses
Optional Deps   : bash-completion: for tab completion
Required By     : pacman  base
Installed Size  : 9.33 MiB
"""


def make_info(depends=(), required_by=(), size=None, other=None) -> PackageInfo:
    return PackageInfo(
        depends=list(depends),
        optional=[],
        required_by=list(required_by),
        size=size or PackageSize(1.0, SizeUnit.KIB),
        other=dict(other or {}),
    )


class FakeTool(ExternalTool):
    """Package manager backed by a dict; records every query."""

    def __init__(self, records: dict[str, PackageInfo]):
        self.records = records
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return "fake-pacman"

    def is_available(self) -> bool:
        return True

    def query_checked(self, package: str) -> tuple[str, PackageInfo]:
        self.calls.append(package)
        if package not in self.records:
            raise PackageNotFoundError(package, f"No package record for '{package}'")
        return package, self.records[package]

    def query_all(self) -> dict[str, PackageInfo]:
        return dict(self.records)


@pytest.fixture(autouse=True)
def reset_config_overrides():
    """Clear CLI-level config overrides between tests."""
    yield
    config.set_verbose(None)
    config.set_placement(None)
    config.set_unique_edges(None)


@pytest.fixture
def fake_tool():
    return FakeTool(
        {
            "pacman": make_info(["bash", "glibc", "libarchive", "curl"]),
            "bash": make_info(["readline", "glibc", "ncurses"]),
            "glibc": make_info([]),
            "curl": make_info(["glibc", "openssl"]),
        }
    )
