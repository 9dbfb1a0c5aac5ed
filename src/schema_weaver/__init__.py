"""Relationship inference and combined-output assembly for heterogeneous tabular schemas."""

__version__ = "0.1.0"
