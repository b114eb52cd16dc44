"""Taxonomy complexity model — derives a batch ceiling from taxonomy placement."""

from collections.abc import Sequence
from typing import Protocol

from qbank_eval.job.domain.case import TestCase

_FALLBACK_FACTOR = 1.0

_SUBCATEGORY_FACTORS: dict[tuple[str, str], float] = {
    ("Medical Dermatology", "Inflammatory Dermatoses"): 1.2,
    ("Medical Dermatology", "Genodermatoses (Inherited Skin Disorders)"): 2.0,
    ("Surgical Dermatology", "Benign Neoplasms and Cysts"): 1.4,
    ("Foundational Knowledge", "Foundational Concepts"): 0.8,
    ("Foundational Knowledge", "Anatomy, Physiology, and Biology"): 1.0,
    ("Research and Evidence-Based Medicine", "Core Epidemiologic Concepts and Measures"): 1.6,
    ("Therapeutics and Pharmacology", "Percutaneous absorption & cutaneous PK/PD"): 1.3,
}

_CATEGORY_FACTORS: dict[str, float] = {
    "Medical Dermatology": 1.2,
    "Surgical Dermatology": 1.3,
    "Pediatric Dermatology": 1.4,
    "Dermatopathology": 1.8,
    "Foundational Knowledge": 0.9,
    "Research and Evidence-Based Medicine": 1.5,
    "Therapeutics and Pharmacology": 1.2,
}


class TaxonomyComplexity(Protocol):
    """Structural interface for taxonomy-aware batch ceilings."""

    def batch_size_ceiling(
        self, test_cases: Sequence[TestCase], max_safe: int
    ) -> int: ...


class StaticTaxonomyComplexity:
    """Complexity factors from a fixed (category, subcategory) table.

    Unknown subcategories fall back to their category's default factor and
    unknown categories to 1.0. The ceiling shrinks as the average factor of
    the cases grows.

    Does NOT inherit from TaxonomyComplexity (structural typing via Protocol).
    """

    def factor(self, category: str, subcategory: str | None) -> float:
        if subcategory is not None:
            exact = _SUBCATEGORY_FACTORS.get((category, subcategory))
            if exact is not None:
                return exact
        return _CATEGORY_FACTORS.get(category, _FALLBACK_FACTOR)

    def batch_size_ceiling(self, test_cases: Sequence[TestCase], max_safe: int) -> int:
        if not test_cases:
            return 1
        average = sum(
            self.factor(case.category, case.subcategory) for case in test_cases
        ) / len(test_cases)

        if average >= 2.0:
            ceiling = 1
        elif average >= 1.5:
            ceiling = 2
        elif average >= 1.2:
            ceiling = 3
        else:
            ceiling = max_safe
        return max(1, min(ceiling, max_safe))
