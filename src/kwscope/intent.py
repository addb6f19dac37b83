"""Rule-based search intent classification.

A keyword is matched against four phrase lists in priority order
(transactional, commercial, informational, navigational); the first list
with a phrase contained in the lowercased keyword wins. Keywords matching
nothing are informational.
"""

import logging
from typing import Dict, Iterable, Tuple

from .schema import IntentType, KeywordRecord

# Matching is plain substring containment, so "get" also matches "budget"
# and "app" matches "happy".
TRANSACTIONAL_PATTERNS = (
    "buy", "purchase", "order", "shop", "sale", "discount", "coupon",
    "promo code", "deal", "cheap", "cheapest", "affordable", "price",
    "pricing", "cost", "for sale", "free shipping", "delivery",
    "subscribe", "subscription", "sign up", "join", "get",
    "add to cart", "checkout", "apply", "enroll", "register",
    "book", "rent", "hire",
)
COMMERCIAL_PATTERNS = (
    "best", "top", "review", "reviews", "comparison", "compare",
    "vs", "versus", "alternative", "alternatives", "recommended",
    "rating", "ratings", "good", "better", "worth it",
    "pros and cons", "guide", "how to choose",
)
INFORMATIONAL_PATTERNS = (
    "how to", "what is", "what are", "why", "benefits", "guide",
    "tutorial", "recipe", "how do i", "can i", "does", "tips",
    "ideas", "meaning", "definition", "ingredients", "side effects",
    "health benefits", "calories in", "nutrition", "history of",
    "difference between",
)
NAVIGATIONAL_PATTERNS = (
    "login", "app", "menu", "locations", "store", "hours",
    "official", "website",
)

INTENT_PATTERNS: Tuple[Tuple[IntentType, Tuple[str, ...]], ...] = (
    (IntentType.TRANSACTIONAL, TRANSACTIONAL_PATTERNS),
    (IntentType.COMMERCIAL, COMMERCIAL_PATTERNS),
    (IntentType.INFORMATIONAL, INFORMATIONAL_PATTERNS),
    (IntentType.NAVIGATIONAL, NAVIGATIONAL_PATTERNS),
)


def classify_intent(keyword: str) -> IntentType:
    text = (keyword or "").lower().strip()
    for intent, patterns in INTENT_PATTERNS:
        if any(pattern in text for pattern in patterns):
            return intent
    return IntentType.INFORMATIONAL


def classify_intents(records: Iterable[KeywordRecord]) -> Dict[str, IntentType]:
    """Intent per keyword text, in batch order."""
    intents = {r.keyword: classify_intent(r.keyword) for r in records}
    logging.debug(f"Classified intent for {len(intents)} keywords")
    return intents
