"""
Routers package for FastAPI endpoints.

Organized by domain:
- extraction: Document upload and structured extraction
- fields: AI field suggestion
- templates: Built-in schema templates
"""

from . import extraction, fields, templates

__all__ = ["extraction", "fields", "templates"]
