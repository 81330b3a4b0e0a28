"""Idea briefs: markdown files whose front matter names the market and pre-answers the questions."""

import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import frontmatter
import yaml

from warroom.errors import InvalidInputError


@dataclass
class IdeaBrief:
    idea: str
    location: str
    answers: list[str] = field(default_factory=list)
    source: str = "cli"


def open_inbox(inbox_dir: Path, archive_dir: Path) -> list[Path]:
    """Create the inbox folders if needed and return queued briefs, oldest first."""
    for folder in (inbox_dir, archive_dir):
        folder.mkdir(parents=True, exist_ok=True)
    return sorted(inbox_dir.glob("*.md"), key=lambda p: p.stat().st_mtime)


def parse_brief(file_path: Path) -> IdeaBrief:
    """Parse a markdown brief: the body is the idea, frontmatter carries the rest.

    Frontmatter keys: location (str, required), answers (list of 3 str, optional).

    Raises:
        InvalidInputError: If the frontmatter is not valid YAML, the idea or
            location is missing, or answers is present but not a list.
    """
    try:
        post = frontmatter.load(str(file_path))
    except yaml.YAMLError as exc:
        raise InvalidInputError(f"{file_path.name}: malformed frontmatter: {exc}") from exc
    idea = post.content.strip()
    location = str(post.metadata.get("location", "")).strip()
    if not idea:
        raise InvalidInputError(f"{file_path.name}: brief has no idea text")
    if not location:
        raise InvalidInputError(f"{file_path.name}: frontmatter is missing 'location'")

    answers_raw = post.metadata.get("answers", [])
    if not isinstance(answers_raw, list):
        raise InvalidInputError(f"{file_path.name}: 'answers' must be a list")

    return IdeaBrief(
        idea=idea,
        location=location,
        answers=[str(a).strip() for a in answers_raw],
        source=str(file_path),
    )


def archive_brief(file_path: Path, archive_dir: Path, outcome: str = "completed") -> Path:
    """Move a processed brief into archive_dir.

    The name gets a timestamp and, for anything but a completed debate, the
    outcome in capitals (FAILED_, INVALID_, DISCARDED_) so reruns are easy to spot.
    """
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    label = "" if outcome == "completed" else f"{outcome.upper()}_"
    dest = archive_dir / f"{label}{stamp}_{file_path.name}"
    shutil.move(str(file_path), str(dest))
    return dest
