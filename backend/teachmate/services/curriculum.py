"""Curriculum policy tables shared by the agents.

Subject naming, the per-subject chapter numbering used by the curriculum
index, and grade-number parsing all live here.
"""

import re
from typing import Optional

SUBJECT_ALIASES = {
    "math": "Mathematics",
    "maths": "Mathematics",
    "mathematics": "Mathematics",
    "science": "Science",
    "english": "English",
}

# Value stored in the index's ``subject`` metadata field (case-sensitive).
INDEX_SUBJECT = {
    "Mathematics": "Mathematics",
    "Science": "Science",
    "English": "english",
}

CURRICULUM_TYPE = {
    "Science": "CBSE Science",
    "Mathematics": "CBSE Mathematics",
    "English": "CBSE English",
}

# Chapter numbering in the index: Mathematics and Science books number
# chapters from 101, English from 1. Numbers already past the offset are kept.
CHAPTER_NUMBER_OFFSET = {
    "Mathematics": 100,
    "Science": 100,
    "English": 0,
}

NUMBER_WORDS = {
    "first": "1", "second": "2", "third": "3", "fourth": "4", "fifth": "5",
    "one": "1", "two": "2", "three": "3", "four": "4", "five": "5",
    "six": "6", "seven": "7", "eight": "8", "nine": "9", "ten": "10",
    "eleven": "11", "twelve": "12",
}

_CHAPTER_REF = re.compile(r"(?:chapter|ch\.?)\s*(\d+)")
_NUMBER_WORD = re.compile(r"\b(" + "|".join(NUMBER_WORDS) + r")\b")


def canonical_subject(name: Optional[str]) -> str:
    """'maths' -> 'Mathematics'; unknown names are returned stripped."""
    if not name:
        return ""
    return SUBJECT_ALIASES.get(name.strip().lower(), name.strip())


def index_subject(name: Optional[str]) -> str:
    subject = canonical_subject(name)
    return INDEX_SUBJECT.get(subject, subject)


def curriculum_type(name: Optional[str]) -> str:
    return CURRICULUM_TYPE.get(canonical_subject(name), "CBSE General")


def index_chapter(subject: Optional[str], number) -> str:
    """Map a textbook chapter number to the index's chapter key."""
    n = int(number)
    offset = CHAPTER_NUMBER_OFFSET.get(canonical_subject(subject), 0)
    if offset and n < offset:
        n += offset
    return str(n)


def extract_chapters(text: str, subject: Optional[str]) -> list[str]:
    """Find chapter references ("chapter one", "ch 2", "chapter 103") in free text."""
    lowered = _NUMBER_WORD.sub(lambda m: NUMBER_WORDS[m.group(1)], (text or "").lower())
    return [index_chapter(subject, num) for num in _CHAPTER_REF.findall(lowered)]


def grade_number(grade_name: Optional[str], default: int = 8) -> int:
    """'Grade 8' -> 8, anything without digits -> default."""
    digits = re.sub(r"\D", "", str(grade_name or ""))
    return int(digits) if digits else default
