"""capibuild - builds the LiteRT-LM C API shared library from a source checkout."""

__version__ = "0.1.0"
