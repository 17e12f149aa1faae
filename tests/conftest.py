import sys
from pathlib import Path

import fitz
import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

PAGE_ZERO_LINES = [
    ((50, 100), "First line highlight text"),
    ((50, 120), "Second line highlight text"),
]
PAGE_ONE_LINES = [
    ((50, 100), "Another page with words"),
]


def create_sample_pdf(pdf_path: Path) -> Path:
    """Two small pages of text with title and author set"""
    doc = fitz.open()
    for lines in (PAGE_ZERO_LINES, PAGE_ONE_LINES):
        page = doc.new_page(width=400, height=300)
        for point, text in lines:
            page.insert_text(point, text, fontsize=12)
    doc.set_metadata({"title": "Sample Book", "author": "Jane Reader"})
    doc.save(str(pdf_path))
    doc.close()
    return pdf_path


@pytest.fixture
def sample_pdf(tmp_path) -> Path:
    return create_sample_pdf(tmp_path / "sample.pdf")
