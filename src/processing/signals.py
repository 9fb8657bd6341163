"""
Keyword heuristics over evidence text: friction severity and lead-user
sophistication.
"""
from typing import Iterable, List

from core.entities import EvidenceItem, FrictionSeverity, LeadUserIndicator


def keyword_match(text: str, keywords: Iterable[str]) -> bool:
    text = text.lower()
    return any(k.lower() in text for k in keywords)


# Pain point items mentioning any of these are also lead-user evidence.
LEAD_USER_LEXICON = [
    "script",
    "python",
    "macro",
    "excel",
    "sheets",
    "zapier",
    "automation",
    "built my own",
    "custom",
]

FRICTION_KEYWORDS = {
    "minor_bug": [
        "bug", "glitch", "sometimes fails", "minor issue", "annoyance",
    ],
    "workflow_gap": [
        "no way to", "missing feature", "have to manually", "workaround",
        "wish i could", "takes too long", "repetitive task",
    ],
    "critical_pain": [
        "nightmare", "impossible", "losing money", "losing customers",
        "hours every day", "critical problem", "desperate for",
    ],
}

# Checked in order; the first match wins.
LEAD_USER_PATTERNS = [
    ("custom_script", 4, ["script", "python", "node"]),
    ("excel_macro", 3, ["excel", "sheets", "macro"]),
    ("zapier_integration", 2, ["zapier", "make.com", "n8n"]),
]


def is_lead_user_item(item: EvidenceItem) -> bool:
    return keyword_match(item.text, LEAD_USER_LEXICON)


def classify_friction_severity(text: str) -> FrictionSeverity:
    """Critical wins over workflow gap; anything else is a minor bug."""
    if keyword_match(text, FRICTION_KEYWORDS["critical_pain"]):
        return "critical_pain"
    if keyword_match(text, FRICTION_KEYWORDS["workflow_gap"]):
        return "workflow_gap"
    return "minor_bug"


def detect_lead_user_indicators(signals: Iterable[str]) -> List[LeadUserIndicator]:
    """One indicator per free-text signal, typed by the tooling it mentions."""
    indicators = []
    for signal in signals:
        for kind, level, needles in LEAD_USER_PATTERNS:
            if keyword_match(signal, needles):
                indicators.append(
                    LeadUserIndicator(type=kind, description=signal, sophistication_level=level)
                )
                break
        else:
            indicators.append(
                LeadUserIndicator(type="manual_process", description=signal, sophistication_level=1)
            )
    return indicators
