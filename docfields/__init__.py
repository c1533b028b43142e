"""
docfields: schema-constrained structured data extraction from documents.
"""

__version__ = "1.0.0"
