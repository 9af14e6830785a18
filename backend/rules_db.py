"""
Rule Database - Keyword rules, score weights and recommendation rules
Think of this like a signature database, but for copyright risk
"""

import copy
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

RULES_FILE_NAME = "rules.json"
RULE_SECTIONS = ("dimensions", "score_rules", "thresholds", "issue_triggers", "recommendations")


class RuleDatabase:
    """
    Manages the copyright rule set.

    Each dimension entry includes:
    - field: submission attribute the keywords are matched against
    - gate: optional boolean attribute; when false the `inactive` verdict applies
    - lowercase: whether the field is lower-cased before matching
    - rules: (keywords, risk, details) tried in order, first match wins
    - default: verdict when no rule matches

    Score rules, thresholds, issue triggers and recommendations are kept
    the same way so that every decision the analyzer makes is data.
    """

    def __init__(self, db_path: str = None):
        """Initialize and load rules from db_path (defaults to rules-db/)."""
        if db_path is None:
            db_path = Path(__file__).parent.parent / "rules-db"

        self.db_path = Path(db_path)
        self.dimensions = {}
        self.score_rules = []
        self.thresholds = {}
        self.issue_triggers = []
        self.recommendations = []

        self._load_database()

    def _load_database(self) -> None:
        """Load built-in rules, then apply sections from rules.json if present"""
        defaults = {
            "dimensions": self._get_default_dimensions(),
            "score_rules": self._get_default_score_rules(),
            "thresholds": self._get_default_thresholds(),
            "issue_triggers": self._get_default_issue_triggers(),
            "recommendations": self._get_default_recommendations(),
        }

        rules_file = self.db_path / RULES_FILE_NAME
        overrides = {}
        if rules_file.exists():
            try:
                with open(rules_file, 'r', encoding='utf-8') as f:
                    overrides = json.load(f)
                if not isinstance(overrides, dict):
                    raise ValueError("top-level JSON value must be an object")
            except Exception as e:
                logger.error(f"Error loading {rules_file}: {e}")
                overrides = {}

        # A malformed section keeps its built-in rules; the others still apply
        for section in RULE_SECTIONS:
            if section not in overrides:
                continue
            try:
                _SECTION_VALIDATORS[section](overrides[section])
            except ValueError as e:
                logger.error(f"Error loading section '{section}' from {rules_file}: {e}")
                continue
            defaults[section] = overrides[section]
            logger.info(f"Loaded rule section '{section}' from {rules_file}")

        self.dimensions = defaults["dimensions"]
        self.score_rules = defaults["score_rules"]
        self.thresholds = defaults["thresholds"]
        self.issue_triggers = defaults["issue_triggers"]
        self.recommendations = defaults["recommendations"]

    # Getters hand out copies; the loaded table never changes after init

    def get_dimensions(self) -> dict:
        """Return all dimension rule sets keyed by dimension name"""
        return copy.deepcopy(self.dimensions)

    def get_dimension(self, name: str) -> dict:
        """Rule set for one dimension (empty dict if unknown)"""
        return copy.deepcopy(self.dimensions.get(name, {}))

    def get_score_rules(self) -> list[dict]:
        return copy.deepcopy(self.score_rules)

    def get_score_rule(self, rule_id: str) -> dict | None:
        """Find a score rule by id"""
        for rule in self.score_rules:
            if rule.get("id") == rule_id:
                return copy.deepcopy(rule)
        return None

    def get_thresholds(self) -> dict:
        return dict(self.thresholds)

    def get_issue_triggers(self) -> list[dict]:
        return copy.deepcopy(self.issue_triggers)

    def get_recommendations(self) -> list[dict]:
        return copy.deepcopy(self.recommendations)

    def describe(self) -> dict:
        """Rule table for display (deep copy, safe to hand to callers)"""
        return copy.deepcopy({
            "dimensions": self.dimensions,
            "score_rules": self.score_rules,
            "thresholds": self.thresholds,
            "issue_triggers": self.issue_triggers,
            "recommendations": [
                {"id": r.get("id"), "priority": r.get("priority"), "title": r.get("title")}
                for r in self.recommendations
            ],
        })

    def _get_default_dimensions(self) -> dict:
        """Default per-dimension keyword rules"""
        return {
            "title": {
                "field": "title",
                "lowercase": True,
                "rules": [
                    {
                        "id": "title-001",
                        "keywords": ["official", "trailer", "movie", "disney", "marvel", "nintendo"],
                        "risk": "medium",
                        "details": "Contains potentially trademarked terms",
                    },
                ],
                "default": {"risk": "low", "details": "Title appears safe"},
            },
            "description": {
                "field": "description",
                "lowercase": True,
                "rules": [
                    {
                        "id": "description-001",
                        "keywords": ["copyright", "©", "all rights reserved", "trademark"],
                        "risk": "low",
                        "details": "Contains copyright-related terms - ensure proper attribution",
                    },
                ],
                "default": {"risk": "low", "details": "Description appears safe"},
            },
            "music": {
                "field": "music_source",
                "gate": "uses_music",
                "inactive": {"risk": "low", "details": "No music detected"},
                "rules": [
                    {
                        "id": "music-001",
                        "keywords": ["commercial", "popular"],
                        "risk": "high",
                        "details": "Commercial music detected - high risk of copyright claims",
                    },
                    {
                        "id": "music-002",
                        "keywords": ["stock", "royalty-free"],
                        "risk": "low",
                        "details": "Royalty-free music - verify licensing terms",
                    },
                ],
                "default": {"risk": "medium", "details": "Music source unclear - verify copyright status"},
            },
            "footage": {
                "field": "footage_source",
                "gate": "uses_footage",
                "inactive": {"risk": "low", "details": "Original footage only"},
                "rules": [
                    {
                        "id": "footage-001",
                        "keywords": ["movie", "tv"],
                        "risk": "high",
                        "details": "Movie/TV footage - likely copyrighted",
                    },
                    {
                        "id": "footage-002",
                        "keywords": ["stock"],
                        "risk": "medium",
                        "details": "Stock footage - verify licensing",
                    },
                ],
                "default": {"risk": "low", "details": "Footage source appears safe"},
            },
            "thumbnail": {
                "gate": "has_thumbnail",
                "inactive": {"risk": "low", "details": "No custom thumbnail"},
                "rules": [],
                "default": {"risk": "low", "details": "Custom thumbnail uploaded"},
            },
            "text": {
                "field": "text_source",
                "gate": "has_text",
                "inactive": {"risk": "low", "details": "No external text content"},
                "rules": [
                    {
                        "id": "text-001",
                        "keywords": ["book", "article"],
                        "risk": "medium",
                        "details": "Text from published works - verify fair use or permissions",
                    },
                ],
                "default": {"risk": "low", "details": "Text content appears original"},
            },
        }

    def _get_default_score_rules(self) -> list[dict]:
        """
        Weighted signals for the overall score. These read the raw
        submission, not the dimension verdicts.
        """
        return [
            {"id": "score-music-commercial", "gate": "uses_music", "field": "music_source",
             "keywords": ["commercial"], "weight": 30},
            {"id": "score-footage-stock", "gate": "uses_footage", "field": "footage_source",
             "keywords": ["stock"], "weight": 20},
            {"id": "score-title-trademark", "field": "title", "lowercase": True,
             "keywords": ["official", "trailer"], "weight": 25},
            {"id": "score-text-published", "gate": "has_text", "field": "text_source",
             "keywords": ["book", "article"], "weight": 15},
        ]

    def _get_default_thresholds(self) -> dict:
        """Minimum score for each overall level above low"""
        return {"high": 50, "medium": 25}

    def _get_default_issue_triggers(self) -> list[dict]:
        """
        Verdicts that surface as issues. Footage `high` and music `medium`
        are not listed and stay silent.
        """
        return [
            {
                "dimension": "music",
                "risk": "high",
                "type": "music",
                "severity": "high",
                "message": "Potential copyrighted music detected",
                "details": "Commercial music tracks are often subject to copyright claims",
            },
            {
                "dimension": "footage",
                "risk": "medium",
                "type": "footage",
                "severity": "medium",
                "message": "Stock footage may require licensing",
                "details": "Verify that your footage is royalty-free or properly licensed",
            },
            {
                "dimension": "title",
                "risk": "medium",
                "type": "title",
                "severity": "medium",
                "message": "Title may contain trademarked terms",
                "details": "Consider using more generic terms to avoid potential issues",
            },
        ]

    def _get_default_recommendations(self) -> list[dict]:
        """
        Recommendation rules in output order. `when` is one of:
        {"overall_risk": level}, {"score_rule": id},
        {"dimension": name, "risk": level}, or null for always.
        """
        return [
            {
                "id": "rec-alternative-content",
                "when": {"overall_risk": "high"},
                "priority": "high",
                "title": "Consider Alternative Content",
                "description": "Your video has high copyright risk. Consider using royalty-free alternatives.",
            },
            {
                "id": "rec-replace-music",
                "when": {"score_rule": "score-music-commercial"},
                "priority": "high",
                "title": "Replace Commercial Music",
                "description": "Use YouTube Audio Library, Creative Commons, or original music instead.",
            },
            {
                "id": "rec-modify-title",
                "when": {"dimension": "title", "risk": "medium"},
                "priority": "medium",
                "title": "Modify Title",
                "description": "Remove trademarked terms and use more descriptive, original language.",
            },
            {
                "id": "rec-attribution",
                "when": None,
                "priority": "low",
                "title": "Add Proper Attribution",
                "description": "Include credits and sources in your description for any third-party content.",
            },
            {
                "id": "rec-content-id",
                "when": None,
                "priority": "low",
                "title": "Monitor Content ID",
                "description": "Check for Content ID claims after upload and be prepared to dispute false positives.",
            },
        ]


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_keywords(rule: dict, where: str) -> None:
    keywords = rule.get("keywords", [])
    if not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords):
        raise ValueError(f"{where}: 'keywords' must be a list of strings")


def _check_optional_str(entry: dict, keys: tuple, where: str) -> None:
    for key in keys:
        if key in entry and entry[key] is not None and not isinstance(entry[key], str):
            raise ValueError(f"{where}: '{key}' must be a string")


def _check_rule_list(value, where: str) -> list:
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ValueError(f"{where} must be a list of objects")
    return value


def _validate_dimensions(value) -> None:
    if not isinstance(value, dict):
        raise ValueError("dimensions must be an object keyed by dimension name")
    for name, rule_set in value.items():
        if not isinstance(rule_set, dict):
            raise ValueError(f"dimension '{name}' must be an object")
        _check_optional_str(rule_set, ("field", "gate"), f"dimension '{name}'")
        for key in ("default", "inactive"):
            verdict = rule_set.get(key)
            if verdict is not None:
                if not isinstance(verdict, dict):
                    raise ValueError(f"dimension '{name}': '{key}' must be an object")
                _check_optional_str(verdict, ("risk", "details"), f"dimension '{name}' {key}")
        for rule in _check_rule_list(rule_set.get("rules", []), f"dimension '{name}' rules"):
            _check_keywords(rule, f"rule {rule.get('id', '?')}")
            _check_optional_str(rule, ("risk", "details"), f"rule {rule.get('id', '?')}")


def _validate_score_rules(value) -> None:
    for rule in _check_rule_list(value, "score_rules"):
        where = f"score rule {rule.get('id', '?')}"
        _check_keywords(rule, where)
        _check_optional_str(rule, ("id", "field", "gate"), where)
        if not _is_number(rule.get("weight", 0)):
            raise ValueError(f"{where}: 'weight' must be a number")


def _validate_thresholds(value) -> None:
    if not isinstance(value, dict):
        raise ValueError("thresholds must be an object")
    for key, threshold in value.items():
        if not _is_number(threshold):
            raise ValueError(f"threshold '{key}' must be a number")


def _validate_issue_triggers(value) -> None:
    for trigger in _check_rule_list(value, "issue_triggers"):
        _check_optional_str(
            trigger, ("dimension", "risk", "type", "severity", "message", "details"), "issue trigger"
        )


def _validate_recommendations(value) -> None:
    for rule in _check_rule_list(value, "recommendations"):
        where = f"recommendation {rule.get('id', '?')}"
        _check_optional_str(rule, ("priority", "title", "description"), where)
        when = rule.get("when")
        if when is not None and not isinstance(when, dict):
            raise ValueError(f"{where}: 'when' must be an object or null")


_SECTION_VALIDATORS = {
    "dimensions": _validate_dimensions,
    "score_rules": _validate_score_rules,
    "thresholds": _validate_thresholds,
    "issue_triggers": _validate_issue_triggers,
    "recommendations": _validate_recommendations,
}
