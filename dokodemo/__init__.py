"""Dokodemo Door: personal content tracker (entries, tags, categories)."""

__version__ = "0.2.0"
