"""Translate OGC Filter Encoding XML into PostGIS SQL conditions and describe filter capabilities."""

__version__ = "0.1.0"
__all__ = ["capabilities", "comparison", "context", "errors", "expression", "filter", "logical", "spatial"]