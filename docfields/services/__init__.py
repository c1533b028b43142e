"""
Services package for the extraction application.

Contains:
- document_service: PDF/text document to plain text
- schema_builder: field descriptors to validation model and strict JSON schema
- extraction_service: structured extraction orchestration
- suggestion_service: AI-generated field descriptors
- ai: OpenAI integration
"""

from .ai import AIService
from .document_service import DocumentService
from .extraction_service import ExtractionService
from .suggestion_service import SuggestionService

__all__ = ["AIService", "DocumentService", "ExtractionService", "SuggestionService"]
