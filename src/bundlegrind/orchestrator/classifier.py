from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..errors import UnknownFailureCategory


@dataclass(frozen=True)
class FailureCategory:
    needle: str
    slug: str


# Checked in order; the first substring found wins.
CATEGORIES: Tuple[FailureCategory, ...] = (
    FailureCategory("duplicate", "duplicate"),
    FailureCategory("cannot find module", "cannot-find-module"),
    FailureCategory("is not a function", "is-not-a-function"),
    FailureCategory("expected side effect", "expected-side-effect"),
    FailureCategory("timed out", "timeout"),
)


class FailureClassifier:
    def __init__(self, categories: Tuple[FailureCategory, ...] = CATEGORIES) -> None:
        self.categories = categories

    def classify(self, error_text: str) -> str:
        lowered = error_text.lower()
        for category in self.categories:
            if category.needle in lowered:
                return category.slug
        raise UnknownFailureCategory(error_text)

    def slugs(self) -> list[str]:
        return [category.slug for category in self.categories]
