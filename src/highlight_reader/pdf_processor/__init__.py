from .pdf_document import PDFDocument, TextSelection

__all__ = ["PDFDocument", "TextSelection"]
