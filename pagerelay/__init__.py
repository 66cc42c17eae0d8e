"""pagerelay — structured page extraction through a relay or a trusted delegate."""

__version__ = "0.1.0"
