"""Base class for package manager wrappers."""

from abc import ABC, abstractmethod

from rich.console import Console

from pacmap.config import is_verbose_enabled
from pacmap.errors import PackageQueryError
from pacmap.package_info import PackageInfo

console = Console()


class ExternalTool(ABC):
    """A package manager command that reports installed package records."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Executable name."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the executable can be found."""

    @abstractmethod
    def query_checked(self, package: str) -> tuple[str, PackageInfo]:
        """Query one package, raising a PackageQueryError subclass on failure."""

    @abstractmethod
    def query_all(self) -> dict[str, PackageInfo]:
        """Query every installed package."""

    def query(self, package: str) -> tuple[str, PackageInfo] | None:
        """Query one package; failures are reported verbosely and yield None."""
        try:
            return self.query_checked(package)
        except PackageQueryError as e:
            if is_verbose_enabled():
                console.print(f"[dim]{type(e).__name__}: {e}[/dim]")
            return None
