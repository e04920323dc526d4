"""PrivateFolio: portfolio tracker with client-side encrypted positions."""

__version__ = "1.0.0"
