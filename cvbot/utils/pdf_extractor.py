from io import BytesIO

from pypdf import PdfReader

from cvbot.core.config import settings


def extract_text_from_pdf_bytes(data: bytes, max_pages: int | None = None) -> tuple[str, dict]:
    """Extract text content from PDF file bytes.

    Args:
        data: Raw bytes of the PDF file.
        max_pages: Page ceiling; defaults to ``app.max_pdf_pages``.

    Returns:
        tuple: A tuple containing:
            - str: Extracted text from all pages, pages separated by newlines.
            - dict: Metadata with page count.

    Raises:
        ValueError: If the PDF has too many pages.
        pypdf.errors.PyPdfError: If the document cannot be read.
    """
    limit = max_pages if max_pages is not None else settings.app.max_pdf_pages
    reader = PdfReader(BytesIO(data))

    page_count = len(reader.pages)
    if page_count > limit:
        raise ValueError(
            f"PDF has too many pages: {page_count} (max allowed: {limit})"
        )

    texts = [page.extract_text() or "" for page in reader.pages]
    full_text = "\n".join(texts).strip()
    return full_text, {"pages": page_count}
