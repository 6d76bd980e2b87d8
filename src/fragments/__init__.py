"""
Fragment builders: provider data in, HTML fragments (or reference tables) out.
"""

from .calendar_fragments import build_calendar_window_html, resolve_attendees, sort_calendars
from .directory import build_person_directory
from .music import build_music_fragment, clean_track_name
from .scripture import build_passage_html, fetch_scripture_references, split_references

__all__ = [
    "build_calendar_window_html",
    "build_music_fragment",
    "build_passage_html",
    "build_person_directory",
    "clean_track_name",
    "fetch_scripture_references",
    "resolve_attendees",
    "sort_calendars",
    "split_references",
]
