from io import BytesIO

from docx import Document

from cvbot.core.config import settings


def extract_text_from_docx_bytes(data: bytes, max_paragraphs: int | None = None) -> tuple[str, dict]:
    """Extract text content from DOCX file bytes.

    Paragraph text comes first, followed by table cell text, since résumé
    templates often lay out dates and skills in tables.

    Args:
        data: Raw bytes of the DOCX file.
        max_paragraphs: Paragraph ceiling; defaults to ``app.max_docx_paragraphs``.

    Returns:
        tuple: A tuple containing:
            - str: Extracted text.
            - dict: Metadata with paragraph and table counts.

    Raises:
        ValueError: If the DOCX has too many paragraphs.
    """
    limit = max_paragraphs if max_paragraphs is not None else settings.app.max_docx_paragraphs
    doc = Document(BytesIO(data))

    para_count = len(doc.paragraphs)
    if para_count > limit:
        raise ValueError(
            f"DOCX has too many paragraphs: {para_count} (max allowed: {limit})"
        )

    lines = [p.text for p in doc.paragraphs if p.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                lines.append(" | ".join(cells))

    full_text = "\n".join(lines).strip()
    return full_text, {"paragraphs": para_count, "tables": len(doc.tables)}
