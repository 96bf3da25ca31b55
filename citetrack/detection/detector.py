"""
Citation Detector

Decides whether an engine answer mentions a tracked brand, where the first
mention sits, and how confident we are in the match.

Matching rules:
- Domains are literal, case-insensitive substring matches ("acme.com" also
  matches inside "shop.acme.com")
- Brand keywords are whole-word, case-insensitive matches
- Confidence starts from a per-engine base rate and grows 0.2 per match
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

# Position thresholds as a fraction of the response length
TOP_THRESHOLD = 0.33
MIDDLE_THRESHOLD = 0.66

MATCH_WEIGHT = 0.2
MAX_CONFIDENCE = 1.0

POSITION_TOP = "top"
POSITION_MIDDLE = "middle"
POSITION_BOTTOM = "bottom"


@dataclass
class CitationResult:
    """Outcome of running detection over one engine answer."""
    cited: bool
    position: Optional[str]
    confidence_score: float
    response_text: str
    matched_keywords: List[str] = field(default_factory=list)
    total_matches: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation (camelCase, as returned by the API)."""
        return {
            "cited": self.cited,
            "position": self.position,
            "confidenceScore": self.confidence_score,
            "responseText": self.response_text,
            "matchedKeywords": list(self.matched_keywords),
        }


def classify_position(offset: int, length: int) -> str:
    """Bucket a character offset into top/middle/bottom of the text."""
    if length <= 0:
        return POSITION_TOP
    ratio = offset / length
    if ratio < TOP_THRESHOLD:
        return POSITION_TOP
    if ratio < MIDDLE_THRESHOLD:
        return POSITION_MIDDLE
    return POSITION_BOTTOM


def derive_brand_keywords(domains: Sequence[str]) -> List[str]:
    """
    One brand keyword per domain: the label before the first dot.

    "acme.com" -> "acme", "localhost" -> "localhost"
    """
    keywords = []
    for domain in domains:
        if not domain:
            continue
        keywords.append(domain.split(".", 1)[0] if "." in domain else domain)
    return keywords


def _domain_pattern(domain: str) -> "re.Pattern":
    return re.compile(re.escape(domain.lower()), re.IGNORECASE)


def _keyword_pattern(keyword: str) -> "re.Pattern":
    return re.compile(rf"\b{re.escape(keyword.lower())}\b", re.IGNORECASE)


def detect_citations(
    response_text: str,
    domains: Sequence[str],
    brand_keywords: Sequence[str],
    base_confidence: float,
) -> CitationResult:
    """
    Detect brand citations in an engine response.

    Args:
        response_text: Raw answer text from the engine
        domains: Tracked domains (substring match)
        brand_keywords: Brand keywords (whole-word match)
        base_confidence: Engine-specific confidence floor

    Returns:
        CitationResult; never raises on empty inputs
    """
    response_text = response_text or ""
    text = response_text.lower()

    matched: List[str] = []
    seen = set()
    total_matches = 0
    first_offset: Optional[int] = None

    terms = [(d, _domain_pattern) for d in (domains or []) if d and d.strip()]
    terms += [(k, _keyword_pattern) for k in (brand_keywords or []) if k and k.strip()]

    for term, build in terms:
        hits = list(build(term).finditer(text))
        if not hits:
            continue

        total_matches += len(hits)
        # Position follows the first plain occurrence, even inside a longer word
        start = text.find(term.lower())
        if first_offset is None or start < first_offset:
            first_offset = start

        key = term.lower()
        if key not in seen:
            seen.add(key)
            matched.append(term)

    cited = total_matches > 0
    if not cited:
        return CitationResult(
            cited=False,
            position=None,
            confidence_score=0.0,
            response_text=response_text,
        )

    return CitationResult(
        cited=True,
        position=classify_position(first_offset, len(response_text)),
        confidence_score=min(base_confidence + total_matches * MATCH_WEIGHT, MAX_CONFIDENCE),
        response_text=response_text,
        matched_keywords=matched,
        total_matches=total_matches,
    )
