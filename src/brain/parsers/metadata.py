"""
Inline metadata codec.

Task and dump lines carry their metadata as space-separated tokens at the end
of the text:

    #captured:YYYY-MM-DD   capture timestamp (dump only, trailing)
    #p:1 .. #p:3           priority
    #due:<token>           due date
    #word                  freeform tag (no colon)

Every category has an extract_* function returning (clean_text, value) and an
inject/add/remove function that rewrites only its own tokens, leaving all
other text where it was. All functions take the content part of a line (no
checkbox prefix) and are pure.
"""

import re
from typing import Iterable, List, Optional, Tuple

from brain.errors import InvalidInputError
from brain.utils.dates import is_valid_iso_date

TIMESTAMP_RE = re.compile(r"\s*#captured:([0-9-]+)$")
PRIORITY_RE = re.compile(r"(?:^|\s+)#p:([1-3])(?=\s|$)")
DUE_RE = re.compile(r"(?:^|\s+)#due:(\S+)")
TAG_RE = re.compile(r"(?<!\S)#([A-Za-z0-9_-]+)(?![A-Za-z0-9_:-])")
TAG_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")

# Literal setter input meaning "remove the due date"
CLEAR = "clear"


def _collapse_spaces(text: str) -> str:
    return re.sub(r" {2,}", " ", text).strip()


# --- capture timestamp ---

def extract_timestamp(content: str) -> Tuple[str, str]:
    """
    Split a trailing #captured:YYYY-MM-DD token off content.

    Returns:
        (content_without_timestamp, timestamp) where timestamp is "" if absent
    """
    content = content.rstrip()
    m = TIMESTAMP_RE.search(content)
    if not m:
        return content, ""
    return content[: m.start()], m.group(1)


def inject_timestamp(content: str, captured: str) -> str:
    """Append a #captured: token, replacing a trailing one if present."""
    clean, _ = extract_timestamp(content)
    return f"{clean} #captured:{captured}" if clean else f"#captured:{captured}"


# --- priority ---

def extract_priority(content: str) -> Tuple[str, Optional[int]]:
    """
    Extract the #p:N priority token (N in 1-3).

    #p:0, #p:4 and friends are not priorities and stay in the text.

    Returns:
        (content_without_priority, priority or None)
    """
    m = PRIORITY_RE.search(content)
    if not m:
        return content, None
    return PRIORITY_RE.sub("", content).strip(), int(m.group(1))


def validate_priority(priority: Optional[int]) -> Optional[int]:
    if priority is None:
        return None
    if isinstance(priority, bool) or not isinstance(priority, int) or not 1 <= priority <= 3:
        raise InvalidInputError(
            f"Invalid priority: {priority} (must be 1-3)", {"priority": priority}
        )
    return priority


def inject_priority(content: str, priority: Optional[int]) -> str:
    """Remove any #p:N token, then append #p:<priority> unless priority is None."""
    priority = validate_priority(priority)
    content = PRIORITY_RE.sub("", content).strip()
    if priority is None:
        return content
    return f"{content} #p:{priority}" if content else f"#p:{priority}"


# --- due date ---

def extract_due_date(content: str) -> Tuple[str, str]:
    """
    Extract the #due:<token> tag. Shape only: the value is not checked to be
    a real date.

    Returns:
        (content_without_due, due_value or "")
    """
    m = DUE_RE.search(content)
    if not m:
        return content, ""
    return DUE_RE.sub("", content).strip(), m.group(1)


def normalize_due_date(due_date: Optional[str]) -> str:
    """
    Validate setter input.

    Returns:
        "" for None, "" or "clear"; otherwise the date itself

    Raises:
        InvalidInputError: if the value is not a real YYYY-MM-DD date
    """
    if due_date is None:
        return ""
    due_date = due_date.strip()
    if due_date in ("", CLEAR):
        return ""
    if not is_valid_iso_date(due_date):
        raise InvalidInputError(
            f"Invalid date: {due_date} (must be a real YYYY-MM-DD date)",
            {"due_date": due_date},
        )
    return due_date


def inject_due_date(content: str, due_date: Optional[str]) -> str:
    """Remove any #due: token, then append #due:<date> unless clearing."""
    due_date = normalize_due_date(due_date)
    content = DUE_RE.sub("", content).strip()
    if not due_date:
        return content
    return f"{content} #due:{due_date}" if content else f"#due:{due_date}"


# --- freeform tags ---

def extract_tags(content: str) -> Tuple[str, List[str]]:
    """
    Extract freeform #tag tokens. Colon-qualified tokens (#p:1, #due:...,
    #captured:...) are metadata and are left in place.

    Returns:
        (content_without_tags, tags in line order, deduplicated)
    """
    tags: List[str] = []
    for m in TAG_RE.finditer(content):
        if m.group(1) not in tags:
            tags.append(m.group(1))
    clean = TAG_RE.sub("", content)
    return re.sub(r"\s+", " ", clean).strip(), tags


def normalize_tag_names(tags: Iterable[str]) -> List[str]:
    """Strip a leading '#', drop blanks and duplicates, reject malformed names."""
    result: List[str] = []
    for tag in tags:
        name = tag.strip().lstrip("#")
        if not name:
            continue
        if not TAG_NAME_RE.match(name):
            raise InvalidInputError(
                f"Invalid tag: {tag!r} (letters, digits, '-' and '_' only)", {"tag": tag}
            )
        if name not in result:
            result.append(name)
    return result


def add_tags(content: str, tags: Iterable[str]) -> str:
    """Append tags not already present (case-sensitive) at the end of content."""
    _, existing = extract_tags(content)
    new = [t for t in normalize_tag_names(tags) if t not in existing]
    if not new:
        return content
    suffix = " ".join(f"#{t}" for t in new)
    content = content.rstrip()
    return f"{content} {suffix}" if content else suffix


def remove_tags(content: str, tags: Iterable[str]) -> str:
    """Delete each named tag token with its leading space; collapse double spaces."""
    for tag in normalize_tag_names(tags):
        pattern = rf"(^|\s)#{re.escape(tag)}(?![A-Za-z0-9_:-])"
        content = re.sub(pattern, "", content)
    return _collapse_spaces(content)


# --- combined ---

def parse_metadata(content: str) -> Tuple[str, Optional[int], str, List[str]]:
    """
    Run priority, due date and tag extraction in that order.

    Returns:
        (display_content, priority, due_date, tags)
    """
    content, priority = extract_priority(content)
    content, due_date = extract_due_date(content)
    content, tags = extract_tags(content)
    return content, priority, due_date, tags
