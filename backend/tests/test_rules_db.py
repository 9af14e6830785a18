import json

import pytest

from analyzer import CopyrightAnalyzer
from models import RiskLevel, SubmissionInput
from rules_db import RuleDatabase


@pytest.fixture
def db(tmp_path):
    return RuleDatabase(tmp_path)


def _write_rules(path, payload):
    (path / "rules.json").write_text(json.dumps(payload), encoding="utf-8")


def test_rules_db_initialization(db):
    assert set(db.get_dimensions()) == {"title", "description", "music", "footage", "thumbnail", "text"}
    assert len(db.get_score_rules()) == 4
    assert db.get_thresholds() == {"high": 50, "medium": 25}


def test_default_path_without_rules_file():
    """Repository ships no rules.json; built-in rules apply."""
    db = RuleDatabase()
    assert db.db_path.name == "rules-db"
    assert db.get_dimension("music")["gate"] == "uses_music"


def test_default_score_weights(db):
    weights = {r["id"]: r["weight"] for r in db.get_score_rules()}
    assert weights == {
        "score-music-commercial": 30,
        "score-footage-stock": 20,
        "score-title-trademark": 25,
        "score-text-published": 15,
    }


def test_dimension_rules_have_required_fields(db):
    for name, rule_set in db.get_dimensions().items():
        assert "default" in rule_set, name
        for rule in rule_set["rules"]:
            for field in ["id", "keywords", "risk", "details"]:
                assert field in rule, f"Rule {rule.get('id', '?')} missing field '{field}'"


def test_get_dimension_unknown(db):
    assert db.get_dimension("subtitles") == {}


def test_get_score_rule(db):
    assert db.get_score_rule("score-footage-stock")["weight"] == 20
    assert db.get_score_rule("nope") is None


def test_recommendation_rules_in_output_order(db):
    titles = [r["title"] for r in db.get_recommendations()]
    assert titles == [
        "Consider Alternative Content",
        "Replace Commercial Music",
        "Modify Title",
        "Add Proper Attribution",
        "Monitor Content ID",
    ]


def test_describe_is_a_copy(db):
    described = db.describe()
    described["thresholds"]["high"] = 1
    described["dimensions"]["title"]["rules"].clear()
    assert db.get_thresholds()["high"] == 50
    assert db.get_dimension("title")["rules"]


def test_describe_hides_recommendation_text(db):
    rec = db.describe()["recommendations"][0]
    assert rec == {"id": "rec-alternative-content", "priority": "high", "title": "Consider Alternative Content"}


def test_rules_file_overrides_section(tmp_path):
    _write_rules(tmp_path, {"thresholds": {"high": 90, "medium": 10}})
    db = RuleDatabase(tmp_path)
    assert db.get_thresholds() == {"high": 90, "medium": 10}
    # Other sections keep built-in defaults
    assert len(db.get_score_rules()) == 4

    analyzer = CopyrightAnalyzer(db, delay_seconds=0)
    report = analyzer.evaluate(SubmissionInput(title="x", has_text=True, text_source="book"))
    assert report.score == 15
    assert report.overall_risk == RiskLevel.MEDIUM


def test_rules_file_adds_dimension_keyword(tmp_path):
    db = RuleDatabase(tmp_path)
    dimensions = db.get_dimensions()
    dimensions["title"]["rules"][0]["keywords"].append("pokemon")
    _write_rules(tmp_path, {"dimensions": dimensions})

    analyzer = CopyrightAnalyzer(RuleDatabase(tmp_path), delay_seconds=0)
    assert analyzer.analyze_title(SubmissionInput(title="Pokemon unboxing")).risk == RiskLevel.MEDIUM


def test_invalid_rules_file_falls_back(tmp_path, caplog):
    (tmp_path / "rules.json").write_text("{not json", encoding="utf-8")
    db = RuleDatabase(tmp_path)
    assert db.get_thresholds() == {"high": 50, "medium": 25}
    assert "Error loading" in caplog.text


def test_non_object_rules_file_falls_back(tmp_path):
    _write_rules(tmp_path, ["not", "an", "object"])
    db = RuleDatabase(tmp_path)
    assert len(db.get_issue_triggers()) == 3


def test_unknown_risk_in_rules_does_not_raise(tmp_path):
    db = RuleDatabase(tmp_path)
    dimensions = db.get_dimensions()
    dimensions["footage"]["rules"][0]["risk"] = "catastrophic"
    _write_rules(tmp_path, {"dimensions": dimensions})

    analyzer = CopyrightAnalyzer(RuleDatabase(tmp_path), delay_seconds=0)
    verdict = analyzer.analyze_footage(SubmissionInput(uses_footage=True, footage_source="movie"))
    assert verdict.risk == RiskLevel.LOW
    assert verdict.details == "Movie/TV footage - likely copyrighted"


class TestMalformedSections:
    """A section with the wrong shape keeps its built-in rules."""

    def test_dimensions_as_list(self, tmp_path, caplog):
        _write_rules(tmp_path, {"dimensions": ["title"], "thresholds": {"high": 90, "medium": 10}})
        db = RuleDatabase(tmp_path)
        assert db.get_dimension("music")["gate"] == "uses_music"
        assert db.get_thresholds() == {"high": 90, "medium": 10}
        assert "section 'dimensions'" in caplog.text

    def test_dimension_entry_not_object(self, tmp_path):
        _write_rules(tmp_path, {"dimensions": {"title": "official"}})
        analyzer = CopyrightAnalyzer(RuleDatabase(tmp_path), delay_seconds=0)
        assert analyzer.analyze_title(SubmissionInput(title="Official clip")).risk == RiskLevel.MEDIUM

    def test_thresholds_as_strings(self, tmp_path, caplog):
        _write_rules(tmp_path, {"thresholds": {"high": "50", "medium": 25}})
        db = RuleDatabase(tmp_path)
        assert db.get_thresholds() == {"high": 50, "medium": 25}
        assert "threshold 'high' must be a number" in caplog.text

        analyzer = CopyrightAnalyzer(db, delay_seconds=0)
        report = analyzer.evaluate(SubmissionInput(uses_music=True, music_source="commercial"))
        assert report.overall_risk == RiskLevel.MEDIUM

    def test_boolean_threshold_rejected(self, tmp_path):
        _write_rules(tmp_path, {"thresholds": {"high": True, "medium": 25}})
        assert RuleDatabase(tmp_path).get_thresholds()["high"] == 50

    def test_score_keywords_as_string(self, tmp_path, caplog):
        _write_rules(tmp_path, {"score_rules": [{
            "id": "score-music-commercial",
            "gate": "uses_music",
            "field": "music_source",
            "keywords": "commercial",
            "weight": 30,
        }]})
        db = RuleDatabase(tmp_path)
        assert len(db.get_score_rules()) == 4
        assert "'keywords' must be a list of strings" in caplog.text

        analyzer = CopyrightAnalyzer(db, delay_seconds=0)
        assert analyzer.calculate_risk_score(SubmissionInput(uses_music=True, music_source="c")) == 0

    def test_dimension_keywords_as_string(self, tmp_path):
        db = RuleDatabase(tmp_path)
        dimensions = db.get_dimensions()
        dimensions["music"]["rules"][0]["keywords"] = "commercial"
        _write_rules(tmp_path, {"dimensions": dimensions})

        analyzer = CopyrightAnalyzer(RuleDatabase(tmp_path), delay_seconds=0)
        verdict = analyzer.analyze_music(SubmissionInput(uses_music=True, music_source="c"))
        assert verdict.risk == RiskLevel.MEDIUM

    def test_score_weight_not_number(self, tmp_path):
        _write_rules(tmp_path, {"score_rules": [{"id": "x", "field": "title", "keywords": ["a"], "weight": "30"}]})
        assert len(RuleDatabase(tmp_path).get_score_rules()) == 4

    def test_issue_triggers_not_list(self, tmp_path):
        _write_rules(tmp_path, {"issue_triggers": {"dimension": "music"}})
        assert len(RuleDatabase(tmp_path).get_issue_triggers()) == 3

    def test_recommendations_not_list(self, tmp_path, caplog):
        _write_rules(tmp_path, {"recommendations": "Monitor Content ID"})
        db = RuleDatabase(tmp_path)
        assert len(db.get_recommendations()) == 5
        assert "section 'recommendations'" in caplog.text

    def test_recommendation_condition_not_object(self, tmp_path):
        _write_rules(tmp_path, {"recommendations": [{"id": "r", "when": "always", "title": "T"}]})
        assert len(RuleDatabase(tmp_path).get_recommendations()) == 5

    def test_well_formed_section_still_applies(self, tmp_path):
        _write_rules(tmp_path, {
            "recommendations": [{"id": "only", "when": None, "priority": "low", "title": "Only", "description": ""}],
            "thresholds": "high",
        })
        db = RuleDatabase(tmp_path)
        assert [r["id"] for r in db.get_recommendations()] == ["only"]
        assert db.get_thresholds() == {"high": 50, "medium": 25}


def test_getters_return_copies(db):
    analyzer = CopyrightAnalyzer(db, delay_seconds=0)
    submission = SubmissionInput(title="Official Trailer", uses_music=True, music_source="commercial")
    before = analyzer.evaluate(submission)

    db.get_dimensions()["title"]["rules"].clear()
    db.get_dimension("music")["rules"][0]["risk"] = "low"
    db.get_score_rules()[0]["weight"] = 0
    db.get_score_rule("score-title-trademark")["keywords"].clear()
    db.get_thresholds()["high"] = 1000
    db.get_issue_triggers().clear()
    db.get_recommendations().clear()

    assert analyzer.evaluate(submission) == before
    assert before.score == 55
    assert before.overall_risk == RiskLevel.HIGH
