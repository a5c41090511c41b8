from typing import Optional

import pytesseract
from loguru import logger
from pdf2image import convert_from_path
from pdf2image.exceptions import PDFInfoNotInstalledError
from PIL import Image, ImageOps

from docchat.core.errors import ExtractionError


def configure_tesseract(tesseract_cmd: Optional[str]) -> None:
    if tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = tesseract_cmd


def _preprocess(image: Image.Image) -> Image.Image:
    """Grayscale + autocontrast; scanned forms read noticeably better after it."""
    return ImageOps.autocontrast(ImageOps.grayscale(image))


def ocr_pdf_page(file_path: str, page_number: int, dpi: int = 200) -> str:
    """OCRs one 1-based page of a PDF. Returns '' when the page has no readable text."""
    try:
        images = convert_from_path(file_path, dpi=dpi, first_page=page_number, last_page=page_number, fmt='jpeg', thread_count=1)
    except PDFInfoNotInstalledError as e:
        raise ExtractionError("Poppler is not installed; cannot OCR PDF pages", file_path) from e
    if not images:
        return ""
    try:
        text = pytesseract.image_to_string(_preprocess(images[0]), lang='eng')
    except pytesseract.TesseractNotFoundError as e:
        raise ExtractionError("Tesseract executable not found; cannot OCR PDF pages", file_path) from e
    logger.debug(f"[OCR Service] Page {page_number}: {len(text.strip())} chars recognised")
    return text.strip()
