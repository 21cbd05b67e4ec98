"""Control core for a software-defined FM radio console."""

__version__ = "0.1.0"
