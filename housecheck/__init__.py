"""HouseCheck: houses, inspections and inspection photos."""

__version__ = "0.1.0"
