"""English conversation school review site."""

__version__ = "0.1.0"
