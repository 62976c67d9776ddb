"""mdbuilder - multi-language static site builder with machine translation."""

__version__ = "0.1.0"
