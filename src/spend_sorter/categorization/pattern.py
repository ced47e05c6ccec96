import re
from typing import Iterable, List

from spend_sorter.domain.errors import ValidationError


def split_alternatives(source: str) -> List[str]:
    """
    Split pattern text on its top-level "|" separators.

    Pipes that are escaped, inside a group or inside a character class
    belong to a single alternative and are left alone.

    Example:
        >>> split_alternatives("walmart|(kroger|aldi)|a\\|b")
        ['walmart', '(kroger|aldi)', 'a\\|b']
    """
    alternatives = []
    current = []
    depth = 0
    in_class = False
    escaped = False

    for char in source:
        if escaped:
            current.append(char)
            escaped = False
            continue

        if char == "\\":
            escaped = True
        elif in_class:
            if char == "]":
                in_class = False
        elif char == "[":
            in_class = True
        elif char == "(":
            depth += 1
        elif char == ")" and depth:
            depth -= 1
        elif char == "|" and depth == 0:
            alternatives.append("".join(current))
            current = []
            continue

        current.append(char)

    alternatives.append("".join(current))
    return [alt.strip() for alt in alternatives if alt.strip()]


class PatternRule:
    """
    Case-insensitive disjunction of keyword patterns.

    Each alternative is a regular expression searched for anywhere in a
    transaction description, so plain keywords behave as substrings.
    The combined matcher is compiled on construction and on every
    extension, never per match.

    Example:
        ```
        rule = PatternRule.from_source("walmart|kroger")
        rule.matches("WALMART #123")   # True
        rule.extend("aldi")
        rule.source                    # 'walmart|kroger|aldi'
        ```
    """

    SEPARATOR = "|"

    def __init__(self, alternatives: Iterable[str]):
        """
        Args:
            alternatives: Keyword patterns, at least one non-blank

        Raises:
            ValidationError: If no alternative is given or one is not a valid regex
        """
        cleaned = [alt.strip() for alt in alternatives if alt and alt.strip()]
        if not cleaned:
            raise ValidationError("Pattern requires at least one keyword")

        self._compiled = self._compile(cleaned)
        self._alternatives: List[str] = cleaned

    @classmethod
    def from_source(cls, source: str) -> "PatternRule":
        """Build a rule from "|"-joined pattern text"""
        if source is None:
            raise ValidationError("Pattern requires at least one keyword")
        return cls(split_alternatives(source))

    @staticmethod
    def _compile(alternatives: List[str]) -> re.Pattern:
        source = PatternRule.SEPARATOR.join(alternatives)
        try:
            return re.compile(source, re.IGNORECASE)
        except re.error as e:
            raise ValidationError(f"Invalid pattern {source!r}: {e}")

    @property
    def alternatives(self) -> List[str]:
        return list(self._alternatives)

    @property
    def source(self) -> str:
        return self.SEPARATOR.join(self._alternatives)

    def display(self, delimiter: str = ", ") -> str:
        """Alternatives joined for human readers"""
        return delimiter.join(self._alternatives)

    def extend(self, fragment: str) -> None:
        """
        Union new alternatives into the rule.

        Existing alternatives are never removed. Duplicates are kept
        (redundant but harmless). The rule is untouched if the fragment
        is rejected.

        Raises:
            ValidationError: If the fragment is blank or not a valid regex
        """
        new_alternatives = split_alternatives(fragment or "")
        if not new_alternatives:
            raise ValidationError("Cannot extend pattern with an empty keyword")

        combined = self._alternatives + new_alternatives
        self._compiled = self._compile(combined)
        self._alternatives = combined

    def matches(self, text: str) -> bool:
        return self._compiled.search(text) is not None

    def __eq__(self, other):
        if not isinstance(other, PatternRule):
            return NotImplemented
        return self._alternatives == other._alternatives

    def __repr__(self):
        return f"PatternRule({self.source!r})"
