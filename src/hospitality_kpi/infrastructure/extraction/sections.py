"""
Department section segmentation.

Each department has ordered header substrings, most specific first. The
first header (in list order) found anywhere in the text opens the section.
The section closes at the nearest occurrence of any other department's
header after its start, or at end of text.

Headers are matched case-insensitively as whole words: the character
before and after a match must not be alphanumeric, so "hr" never matches
inside "three".
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence

from hospitality_kpi.domain.models import Department

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Section:
    """A department-scoped slice [start, end) of the document text"""

    department: Department
    start: int
    end: int
    text: str


def find_header(lowered_text: str, header: str, start: int = 0) -> int:
    """Index of the first whole-word occurrence of header at or after start, or -1."""
    header = header.lower()
    if not header:
        return -1
    position = lowered_text.find(header, start)
    while position != -1:
        before_ok = position == 0 or not (header[0].isalnum() and lowered_text[position - 1].isalnum())
        end = position + len(header)
        after_ok = end >= len(lowered_text) or not (header[-1].isalnum() and lowered_text[end].isalnum())
        if before_ok and after_ok:
            return position
        position = lowered_text.find(header, position + 1)
    return -1


class SectionSegmenter:
    """
    Splits a document into non-overlapping department sections.

    Example Usage:
        segmenter = SectionSegmenter(rule_table.headers())
        sections = segmenter.segment(text)
        sections[Department.FRONT_OFFICE].text
    """

    def __init__(self, headers: Mapping[Department, Sequence[str]]):
        self.headers: Dict[Department, List[str]] = {dept: list(h) for dept, h in headers.items()}

    def segment(self, text: str) -> Dict[Department, Section]:
        lowered = (text or "").lower()
        starts: Dict[Department, int] = {}

        for department, headers in self.headers.items():
            for header in headers:
                position = find_header(lowered, header)
                if position != -1:
                    starts[department] = position
                    break
            else:
                logger.debug(f"Section {department.value} not found")

        sections: Dict[Department, Section] = {}
        for department, start in starts.items():
            end = len(lowered)
            for other, headers in self.headers.items():
                if other == department:
                    continue
                for header in headers:
                    position = find_header(lowered, header, start + 1)
                    if position != -1 and position < end:
                        end = position
            sections[department] = Section(department=department, start=start, end=end, text=text[start:end])
            logger.debug(f"✓ Found {department.value} section at [{start}, {end})")

        return dict(sorted(sections.items(), key=lambda item: item[1].start))


def segment(text: str, headers: Mapping[Department, Sequence[str]]) -> Dict[Department, Section]:
    """Functional wrapper over SectionSegmenter."""
    return SectionSegmenter(headers).segment(text)
