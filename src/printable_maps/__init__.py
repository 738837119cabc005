"""Split map images into printable multi-page PDF documents."""

__version__ = "0.1.0"
