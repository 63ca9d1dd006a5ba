"""Pattern registry holding user-editable and built-in ad rules."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Iterator, Optional

from adsift.models import DurationRange, FragmentDescriptor, Rule

if TYPE_CHECKING:
    from adsift.config import FilterConfiguration

logger = logging.getLogger(__name__)


class RuleError(Exception):
    """Exception raised when a rule cannot be added to a registry."""

    pass


def default_rules() -> list[Rule]:
    """Return a fresh copy of the default user rule table."""
    return [
        Rule(
            name="Pre-roll Ads",
            url_patterns=["pre-roll", "preroll", "intro-ad", "opening-ad", "prelude"],
            title_patterns=["广告", "预告", "推广", "赞助", "宣传片"],
            duration_range=DurationRange(min=5, max=120),
            priority=10,
        ),
        Rule(
            name="Mid-roll Ads",
            url_patterns=["mid-roll", "midroll", "break", "intermission"],
            title_patterns=["插播", "中断", "休息", "暂停"],
            duration_range=DurationRange(min=3, max=30),
            priority=8,
        ),
        Rule(
            name="Sponsor Content",
            url_patterns=["sponsor", "sponsored", "promotion", "promo"],
            title_patterns=["赞助", "推广", "合作", "品牌"],
            duration_range=DurationRange(min=3, max=60),
            priority=7,
        ),
        Rule(
            name="Generic Ads",
            url_patterns=[
                "adserver",
                "adservice",
                "doubleclick",
                "googlesyndication",
                "admanager",
                "vast",
                "vpaid",
            ],
            title_patterns=["广告", "营销", "商业", "推广"],
            duration_range=DurationRange(min=5, max=300),
            priority=5,
        ),
    ]


# Built-in heuristics applied only outside strict mode; not user-editable
FALLBACK_RULES: tuple[Rule, ...] = (
    Rule(
        name="Generic ad keywords",
        url_patterns=[
            r"(?<![0-9a-z])(ads?|adverts?|advertisement|commercials?|promo|sponsor(ed)?)(?![0-9a-z])"
        ],
        duration_range=DurationRange(min=5, max=60),
        match_type="regex",
    ),
    Rule(
        name="Generic pre-roll",
        url_patterns=["pre-roll", "preroll", "intro-ad", "opening-ad"],
        duration_range=DurationRange(min=10, max=30),
    ),
    Rule(
        name="Generic ad titles",
        title_patterns=["广告", "预告", "推广", "赞助", "advertisement", "sponsored"],
        duration_range=DurationRange(min=5, max=120),
    ),
)


def pattern_matches(pattern: str, text: str, match_type: str) -> bool:
    """Test a single rule pattern against text, case-insensitively.

    An invalid regex is logged and treated as no match.
    """
    if match_type == "regex":
        try:
            return re.search(pattern, text, re.IGNORECASE) is not None
        except re.error as e:
            logger.warning(f"Ignoring invalid regex pattern {pattern!r}: {e}")
            return False
    return pattern.lower() in text.lower()


def rule_matches(rule: Rule, fragment: FragmentDescriptor) -> bool:
    """Check whether every constraint of a rule holds for a fragment.

    Args:
        rule: Rule to evaluate (its enabled flag is not consulted here)
        fragment: Fragment to test

    Returns:
        True if URL, title and duration constraints are all satisfied
    """
    if rule.url_patterns and not any(
        pattern_matches(p, fragment.url, rule.match_type) for p in rule.url_patterns
    ):
        return False

    if rule.title_patterns:
        if not fragment.title:
            return False
        if not any(
            pattern_matches(p, fragment.title, rule.match_type)
            for p in rule.title_patterns
        ):
            return False

    if rule.duration_range is not None:
        if fragment.duration is None:
            return False
        if not rule.duration_range.contains(fragment.duration):
            return False

    return True


def first_match(rules, fragment: FragmentDescriptor) -> Optional[Rule]:
    """Return the first enabled rule matching a fragment, in listed order."""
    for rule in rules:
        if rule.enabled and rule_matches(rule, fragment):
            return rule
    return None


class PatternRegistry:
    """Ordered, name-keyed collection of user rules.

    The registry operates on the list it is given, so a registry built with
    ``from_configuration`` edits the configuration's rule list in place and
    the caller can persist the configuration afterwards.
    """

    def __init__(self, rules: Optional[list[Rule]] = None) -> None:
        """Initialize the registry.

        Args:
            rules: Rule list to manage (defaults to a copy of the default table)
        """
        self._rules = rules if rules is not None else default_rules()
        logger.debug(f"Initialized PatternRegistry with {len(self._rules)} rules")

    @classmethod
    def from_configuration(cls, config: FilterConfiguration) -> "PatternRegistry":
        """Create a registry backed by a configuration's rule list."""
        return cls(config.rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(list(self._rules))

    def get(self, name: str) -> Optional[Rule]:
        """Look up a rule by name."""
        for rule in self._rules:
            if rule.name == name:
                return rule
        return None

    def add(self, rule: Rule) -> None:
        """Append a rule.

        Raises:
            RuleError: If a rule with the same name already exists
        """
        if self.get(rule.name) is not None:
            msg = f"Rule already exists: {rule.name}"
            logger.error(msg)
            raise RuleError(msg)
        self._rules.append(rule)
        logger.info(f"Added rule '{rule.name}'")

    def remove(self, name: str) -> bool:
        """Remove a rule by name.

        Returns:
            True if a rule was removed, False if the name was unknown
        """
        for i, rule in enumerate(self._rules):
            if rule.name == name:
                del self._rules[i]
                logger.info(f"Removed rule '{name}'")
                return True
        logger.debug(f"Cannot remove unknown rule '{name}'")
        return False

    def set_enabled(self, name: str, enabled: bool) -> bool:
        """Enable or disable a rule by name.

        Returns:
            True if a rule was updated, False if the name was unknown
        """
        rule = self.get(name)
        if rule is None:
            logger.debug(f"Cannot toggle unknown rule '{name}'")
            return False
        rule.enabled = enabled
        logger.info(f"Rule '{name}' {'enabled' if enabled else 'disabled'}")
        return True

    def list(self) -> list[Rule]:
        """Return the rules in evaluation order."""
        return list(self._rules)

    def reset(self) -> None:
        """Replace all rules with the default table."""
        self._rules[:] = default_rules()
        logger.info("Reset rules to defaults")

    def match(self, fragment: FragmentDescriptor) -> Optional[Rule]:
        """Return the first enabled rule matching a fragment."""
        return first_match(self._rules, fragment)

    def stats(self) -> dict[str, int]:
        """Count total and enabled rules."""
        return {
            "rules": len(self._rules),
            "enabled_rules": sum(1 for rule in self._rules if rule.enabled),
        }
