"""
Preview derivation tests.
"""
import io

import pytest
from pypdf import PdfReader, PdfWriter

from planpdf.errors import PreviewError
from planpdf.services.pdf_preview import build_preview

from conftest import make_pdf


def pages_of(data: bytes) -> int:
    return len(PdfReader(io.BytesIO(data)).pages)


@pytest.mark.parametrize("source_pages, expected", [(1, 1), (2, 2), (7, 2)])
def test_preview_page_count(source_pages, expected):
    assert pages_of(build_preview(make_pdf(source_pages))) == expected


def test_preview_keeps_page_order():
    writer = PdfWriter()
    for width in (100, 200, 300):
        writer.add_blank_page(width=width, height=400)
    source = io.BytesIO()
    writer.write(source)

    preview = PdfReader(io.BytesIO(build_preview(source.getvalue())))

    assert [float(page.mediabox.width) for page in preview.pages] == [100, 200]


def test_custom_page_cap():
    assert pages_of(build_preview(make_pdf(5), max_pages=3)) == 3


def test_garbage_input_raises_preview_error():
    with pytest.raises(PreviewError):
        build_preview(b"definitely not a pdf")


def test_empty_document_raises_preview_error():
    with pytest.raises(PreviewError):
        build_preview(make_pdf(0))
