"""cxt: compile option reconstruction and filtered AST traversal for C/C++."""

__version__ = "0.1.0"
