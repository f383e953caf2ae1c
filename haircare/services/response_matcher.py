"""Deterministic reply selection over the rule table.

select_reply is a pure function of the profile filters, the utterance and
the (static) rule table: no store, no network.
"""
from dataclasses import dataclass, field
from typing import Optional

from haircare.models.profile import Profile
from haircare.rules import Rule, RuleTable, get_rules

DEFAULT_REPLY = (
    "Thanks for your question! Based on your hair profile, I'd recommend "
    "consulting with a hair care professional for personalized advice. In the "
    "meantime, maintaining a consistent routine with gentle, sulfate-free "
    "products is always a good start."
)


@dataclass(frozen=True)
class ProfileFilterView:
    """The profile attributes rules can filter on."""

    hair_type: Optional[str] = None
    scalp_condition: Optional[str] = None
    concerns: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_profile(cls, profile: Optional[Profile]) -> "ProfileFilterView":
        if profile is None:
            return cls()
        return cls(
            hair_type=profile.hair_type,
            scalp_condition=profile.scalp_condition,
            concerns=frozenset(profile.hair_concerns or ()),
        )


def rule_matches(rule: Rule, profile: ProfileFilterView, normalized_utterance: str) -> bool:
    """Keyword hit AND every filter the rule sets equals the profile's value."""
    if not any(keyword.lower() in normalized_utterance for keyword in rule.keywords):
        return False
    if rule.hair_type is not None and rule.hair_type != profile.hair_type:
        return False
    if rule.scalp is not None and rule.scalp != profile.scalp_condition:
        return False
    return True


def select_reply(
    profile: Optional[ProfileFilterView],
    utterance: str,
    rules: Optional[RuleTable] = None,
) -> str:
    """
    Return the reply of the first matching rule in table order.

    Args:
        profile: Filter view of the caller's profile (None = no attributes)
        utterance: Raw user text
        rules: Rule table override; defaults to the process-wide table

    Returns:
        Reply text; DEFAULT_REPLY when nothing matches
    """
    profile = profile or ProfileFilterView()
    table = get_rules() if rules is None else rules
    normalized = (utterance or "").lower()

    for rule in table:
        if rule_matches(rule, profile, normalized):
            return rule.response

    return DEFAULT_REPLY
