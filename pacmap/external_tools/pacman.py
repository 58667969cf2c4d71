"""pacman wrapper: runs `pacman -Qi` and parses its records."""

import shutil
import subprocess

from rich.console import Console

from pacmap.config import get_pacman_executable, get_query_timeout, is_verbose_enabled
from pacmap.errors import (
    PackageNotFoundError,
    QueryTransportError,
)
from pacmap.external_tools.base import ExternalTool
from pacmap.package_info import (
    PackageInfo,
    parse_package_info,
    parse_package_info_batch,
)

console = Console()

ERROR_PREFIX = "error:"


class PacmanTool(ExternalTool):
    """Query the local pacman database."""

    def __init__(self, executable: str | None = None, timeout: float | None = None):
        self.executable = executable or get_pacman_executable()
        self.timeout = timeout if timeout is not None else get_query_timeout()

    @property
    def name(self) -> str:
        return self.executable

    def is_available(self) -> bool:
        """Check if pacman is installed."""
        return shutil.which(self.executable) is not None

    def _run(self, *args: str, package: str | None = None) -> str:
        try:
            result = subprocess.run(
                [self.executable, "-Qi", *args],
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise QueryTransportError(
                package, f"Package manager not found: {self.executable}"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise QueryTransportError(
                package, f"{self.executable} timed out after {self.timeout}s"
            ) from e
        except OSError as e:
            raise QueryTransportError(
                package, f"Failed to run {self.executable}: {e}"
            ) from e
        return result.stdout

    def query_checked(self, package: str) -> tuple[str, PackageInfo]:
        """
        Query one installed package.

        Args:
            package: Package name.

        Returns:
            Tuple of (name, PackageInfo).

        Raises:
            PackageNotFoundError: Empty output or an `error:` response.
            MalformedRecordError: The record lacks a required field.
            QueryTransportError: pacman could not be run.
        """
        output = self._run(package, package=package)
        if not output.strip() or output.startswith(ERROR_PREFIX):
            raise PackageNotFoundError(package, f"No package record for '{package}'")
        return parse_package_info(output)

    def query_all(self) -> dict[str, PackageInfo]:
        """
        Query every installed package.

        Raises:
            QueryTransportError: pacman could not be run.
        """
        output = self._run()
        packages = parse_package_info_batch(output)
        if is_verbose_enabled():
            console.print(f"[dim]Loaded {len(packages)} package records[/dim]")
        return packages
