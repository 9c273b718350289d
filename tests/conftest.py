"""Shared fixtures for exam core tests."""

import random
from typing import List

import pytest

from tests.helpers import complete_exam, make_questions, start_exam


@pytest.fixture
def rng():
    return random.Random(20240601)


@pytest.fixture
def three_questions():
    return make_questions(3)


@pytest.fixture
def active_session(three_questions, rng):
    return start_exam(three_questions, rng)


@pytest.fixture
def completed_session(active_session):
    return complete_exam(active_session)


@pytest.fixture
def make_pdf():
    """Build an in-memory PDF with one page per text block."""
    import fitz

    def _make(pages: List[str]) -> bytes:
        doc = fitz.open()
        for content in pages:
            page = doc.new_page()
            if content:
                page.insert_text((72, 72), content)
        data = doc.tobytes()
        doc.close()
        return data

    return _make
