"""entitygraph - domain graph analysis for declarative entity definitions."""

__version__ = "0.1.0"
