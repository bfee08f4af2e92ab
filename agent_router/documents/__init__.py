from .pdf import PdfExtractionResult, extract_pdf_text

__all__ = ["PdfExtractionResult", "extract_pdf_text"]
