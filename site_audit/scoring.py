from __future__ import annotations

from typing import Any, Dict, Mapping

# Report label -> Lighthouse category id
SCORE_CATEGORIES = {
    "Performance": "performance",
    "SEO": "seo",
    "Accessibility": "accessibility",
    "Best Practices": "best-practices",
}


def extract_lighthouse_scores(lhr: Mapping[str, Any]) -> Dict[str, float]:
    """Turn the 0..1 category scores of a Lighthouse result into percentages.

    A missing category raises ``KeyError`` and a category Lighthouse could not
    score (``null``) raises ``ValueError``; scores are not rounded.
    """
    categories = lhr["categories"]
    scores = {}
    for label, category_id in SCORE_CATEGORIES.items():
        score = categories[category_id]["score"]
        if score is None:
            raise ValueError(f"Lighthouse could not score the {category_id!r} category")
        scores[label] = score * 100
    return scores
