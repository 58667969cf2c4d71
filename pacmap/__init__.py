"""pacmap: explore the dependency graph of installed pacman packages."""

__version__ = "0.1.0"
