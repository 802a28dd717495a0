# File: backlink_scout/classifier.py
"""backlink_scout.classifier: static authority/value estimate for discovered sources.

The table is evaluated top to bottom against the lowercased URL; the first
row with a matching substring wins. Scores are a best-effort heuristic, but
they are part of the report contract: the same URL always gets the same row.
"""

from __future__ import annotations

from typing import Sequence, Tuple

from backlink_scout.crawler.models import Classification

__all__: Sequence[str] = ("CLASSIFICATION_TABLE", "DEFAULT_CLASSIFICATION", "classify_source")

ClassificationRule = Tuple[Tuple[str, ...], Classification]

CLASSIFICATION_TABLE: Tuple[ClassificationRule, ...] = (
    # app stores
    (("play.google.com",), Classification("google play", 99, 2500)),
    (("apps.apple.com",), Classification("apple store", 99, 2500)),
    (("microsoft.com/store",), Classification("windows store", 96, 1500)),
    (("amazon.com/appstore",), Classification("amazon appstore", 94, 1200)),
    # code hosting and cloud
    (("github.com", "gitlab.com"), Classification("code repo", 95, 500)),
    (("stackoverflow.com",), Classification("stack overflow", 94, 600)),
    (("vercel.app", "netlify.app", "herokuapp.com"), Classification("cloud app", 90, 400)),
    # social and local
    (("facebook.com", "twitter.com", "linkedin.com"), Classification("social media", 90, 50)),
    (("instagram.com", "tiktok.com"), Classification("social media", 88, 40)),
    (("yelp.com", "tripadvisor.com"), Classification("local directory", 70, 300)),
    (("yellowpages.com",), Classification("business directory", 65, 250)),
    # news and publishing
    (("medium.com", "substack.com"), Classification("publishing", 85, 400)),
    (("forbes.com", "techcrunch.com"), Classification("news media", 92, 800)),
    # regional
    ((".cn", "baidu.com"), Classification("china/asia", 50, 80)),
    ((".ru", "yandex."), Classification("russia/eu", 50, 80)),
    # government and education
    ((".gov",), Classification("government", 98, 1000)),
    ((".edu",), Classification("education", 92, 800)),
    # forums
    (("reddit.com",), Classification("reddit", 91, 300)),
    (("quora.com",), Classification("quora", 85, 250)),
)

DEFAULT_CLASSIFICATION = Classification("general web", 40, 20)


def classify_source(url: str) -> Classification:
    """Map *url* to exactly one classification; unmatched URLs get the default."""
    u = url.lower()
    for needles, classification in CLASSIFICATION_TABLE:
        if any(n in u for n in needles):
            return classification
    return DEFAULT_CLASSIFICATION
