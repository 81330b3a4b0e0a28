"""Unit tests for warroom/inbox.py: no API calls."""

import os
import textwrap
from pathlib import Path

import pytest

from warroom.errors import InvalidInputError
from warroom.inbox import archive_brief, open_inbox, parse_brief


def _write(path: Path, text: str) -> Path:
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


def test_parse_brief_with_answers(tmp_path: Path) -> None:
    f = _write(tmp_path / "dog-perfume.md", """\
        ---
        location: Silicon Valley, USA
        answers:
          - B2C DTC
          - $40/mo
          - Millennial pet owners
        ---
        A luxury dog perfume subscription box using organic essential oils.
    """)
    brief = parse_brief(f)
    assert brief.idea.startswith("A luxury dog perfume")
    assert brief.location == "Silicon Valley, USA"
    assert brief.answers == ["B2C DTC", "$40/mo", "Millennial pet owners"]
    assert brief.source == str(f)


def test_parse_brief_without_answers(tmp_path: Path) -> None:
    f = _write(tmp_path / "brief.md", """\
        ---
        location: Berlin
        ---
        Late-night vegan bakery.
    """)
    brief = parse_brief(f)
    assert brief.answers == []


def test_parse_brief_missing_location(tmp_path: Path) -> None:
    f = _write(tmp_path / "brief.md", "Just an idea with no frontmatter.")
    with pytest.raises(InvalidInputError, match="location"):
        parse_brief(f)


def test_parse_brief_empty_body(tmp_path: Path) -> None:
    f = _write(tmp_path / "brief.md", """\
        ---
        location: Berlin
        ---
    """)
    with pytest.raises(InvalidInputError, match="no idea"):
        parse_brief(f)


def test_parse_brief_answers_not_list(tmp_path: Path) -> None:
    f = _write(tmp_path / "brief.md", """\
        ---
        location: Berlin
        answers: all of them
        ---
        Vegan bakery.
    """)
    with pytest.raises(InvalidInputError, match="answers"):
        parse_brief(f)


def test_parse_brief_malformed_frontmatter(tmp_path: Path) -> None:
    f = _write(tmp_path / "broken.md", """\
        ---
        location: [Berlin
        answers: {unclosed
        ---
        Vegan bakery.
    """)
    with pytest.raises(InvalidInputError, match="malformed frontmatter"):
        parse_brief(f)


def test_open_inbox_creates_folders(tmp_path: Path) -> None:
    inbox = tmp_path / "inbox"
    archive = tmp_path / "inbox" / "archive"
    assert open_inbox(inbox, archive) == []
    assert inbox.is_dir()
    assert archive.is_dir()


def test_open_inbox_oldest_first(tmp_path: Path) -> None:
    older = _write(tmp_path / "b.md", "older")
    newer = _write(tmp_path / "a.md", "newer")
    _write(tmp_path / "notes.txt", "ignored")
    os.utime(older, (1_000_000, 1_000_000))
    os.utime(newer, (2_000_000, 2_000_000))
    assert open_inbox(tmp_path, tmp_path / "archive") == [older, newer]


def test_archive_brief_completed_keeps_name(tmp_path: Path) -> None:
    archive = tmp_path / "archive"
    archive.mkdir()
    src = _write(tmp_path / "dog-perfume.md", "x")

    dest = archive_brief(src, archive)

    assert not src.exists()
    assert dest.parent == archive
    assert dest.name.endswith("_dog-perfume.md")
    assert dest.name[0].isdigit()


@pytest.mark.parametrize("outcome", ["failed", "invalid"])
def test_archive_brief_labels_other_outcomes(tmp_path: Path, outcome: str) -> None:
    archive = tmp_path / "archive"
    archive.mkdir()
    src = _write(tmp_path / "brief.md", "x")

    dest = archive_brief(src, archive, outcome)

    assert dest.name.startswith(f"{outcome.upper()}_")
    assert dest.exists()
