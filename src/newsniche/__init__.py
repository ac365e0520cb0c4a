"""News and Niche guest and sponsored post submissions."""

__version__ = "0.1.0"
