"""nmres: deterministic resource pack builder."""

__version__ = "1.0.0"
