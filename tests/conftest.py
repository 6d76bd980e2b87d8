from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.core.models import CalendarRef, Contact


@pytest.fixture
def template_html():
    return (Path(__file__).parent / "fixtures" / "newsletter_template.html").read_text(encoding="utf-8")


@pytest.fixture
def contacts():
    return [
        Contact(name="Alice", emails=["a@x.com"]),
        Contact(name="Bob", emails=["B@X.com", "bob@work.com"]),
    ]


@pytest.fixture
def youth_calendar():
    return CalendarRef(id="youth@group.calendar.google.com", label="Youth")
