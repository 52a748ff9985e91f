"""Onion Tears: cyclomatic and cognitive complexity for JavaScript and TypeScript."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("onion-tears")
except PackageNotFoundError:
    __version__ = "dev"
