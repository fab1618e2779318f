"""tasrun — tool-assisted runs driven by a tiny self-modifying input VM."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("tasrun")
except PackageNotFoundError:
    __version__ = "0.1.0"  # fallback for development
