"""ESG disclosures API."""

__version__ = "0.1.0"
