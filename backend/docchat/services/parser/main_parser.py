import os
from typing import List, Optional

from loguru import logger
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from docchat.core.errors import ExtractionError
from docchat.models.data_models import Page

SUPPORTED_EXTENSIONS = ('.pdf', '.txt')


class DocumentExtractor:
    """Produces the ordered page texts of a document (blocking; run it in an executor)."""

    def __init__(self, ocr_enabled: bool = False, tesseract_cmd: Optional[str] = None):
        self.ocr_enabled = ocr_enabled
        if ocr_enabled:
            from docchat.services.parser.ocr import configure_tesseract
            configure_tesseract(tesseract_cmd)

    def extract_pages(self, file_path: str) -> List[Page]:
        file_extension = os.path.splitext(file_path)[1].lower()
        if not os.path.exists(file_path):
            raise ExtractionError("File does not exist", file_path)
        if file_extension == '.pdf':
            return self._extract_pdf(file_path)
        if file_extension == '.txt':
            return self._extract_txt(file_path)
        raise ExtractionError(f"Unsupported file type '{file_extension}'", file_path)

    # --- PDF Parsing ---
    def _extract_pdf(self, file_path: str) -> List[Page]:
        try:
            reader = PdfReader(file_path)
            num_pages = len(reader.pages)
            logger.info(f"[Parser] Processing PDF: {os.path.basename(file_path)}, Pages: {num_pages}")
            pages = []
            for page_num in range(num_pages):
                page_text = reader.pages[page_num].extract_text() or ""
                if not page_text.strip() and self.ocr_enabled:
                    logger.info(f"[Parser] Page {page_num+1}: No text layer, attempting OCR...")
                    from docchat.services.parser.ocr import ocr_pdf_page
                    page_text = ocr_pdf_page(file_path, page_num + 1)
                pages.append(Page(index=page_num, text=page_text))
        except (PdfReadError, OSError, ValueError) as e:
            raise ExtractionError(f"Failed to read PDF: {e}", file_path) from e
        return pages

    # --- TXT Parsing ---
    def _extract_txt(self, file_path: str) -> List[Page]:
        try:
            with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
                full_text = f.read()
        except OSError as e:
            raise ExtractionError(f"Failed to read text file: {e}", file_path) from e
        logger.info(f"[Parser] Processing TXT: {os.path.basename(file_path)}")
        return [Page(index=0, text=full_text)]
