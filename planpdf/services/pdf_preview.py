"""
Preview derivation: the first pages of a full report as a new PDF.
"""
import io

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError

from planpdf.errors import PreviewError

PREVIEW_PAGES = 2


def build_preview(full_pdf: bytes, max_pages: int = PREVIEW_PAGES) -> bytes:
    """
    Copy the first min(max_pages, page_count) pages into a new document.

    Args:
        full_pdf: Bytes of the full report
        max_pages: Page cap for the preview

    Returns:
        Bytes of the preview PDF

    Raises:
        PreviewError: if the source is unreadable or has no pages
    """
    try:
        reader = PdfReader(io.BytesIO(full_pdf))
        page_count = len(reader.pages)
    except (PyPdfError, ValueError) as e:
        raise PreviewError(f"Full report is not a readable PDF: {e}") from e

    if page_count == 0:
        raise PreviewError("Full report has no pages")

    writer = PdfWriter()
    for index in range(min(max_pages, page_count)):
        writer.add_page(reader.pages[index])

    output = io.BytesIO()
    writer.write(output)
    return output.getvalue()
