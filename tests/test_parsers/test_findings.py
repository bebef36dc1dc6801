"""Tests de l'extraction des constats par forme."""

from tenth_man.parsers.findings import (
    EXTRACTORS,
    FindingsShape,
    extract_issues,
    extract_recommendations,
)


class TestFindings:
    """Tests pour les extracteurs de constats."""

    def test_every_shape_has_an_extractor(self):
        assert set(EXTRACTORS) == set(FindingsShape)

    def test_mixed_strings_and_objects(self):
        payload = {
            "critical_issues": [
                "plain",
                {"title": "titled", "description": "ignored"},
                {"description": "described"},
                {"severity": "high"},
                42,
            ]
        }
        assert extract_issues(payload) == [
            "plain", "titled", "described", '{"severity": "high"}',
        ]

    def test_structural_issues_objects_only(self):
        payload = {"structural_issues": ["ignored string", {"title": "Coupling", "impact": "high"}]}
        assert extract_issues(payload) == ["Coupling"]

    def test_phasing_suggestion(self):
        payload = {
            "phasing_suggestion": [
                {"phase": 1, "title": "Feature flag"},
                {"phase": 2, "scope": "Migrate readers"},
            ]
        }
        assert extract_recommendations(payload) == [
            "Phase 1: Feature flag", "Phase 2: Migrate readers",
        ]

    def test_typed_findings(self):
        payload = {
            "findings": [
                {"type": "critical", "title": "SQL injection", "detail": "..."},
                {"type": "recommendation", "detail": "Use parameterized queries"},
                {"type": "note", "title": "ignored"},
            ]
        }
        assert extract_issues(payload) == ["SQL injection"]
        assert extract_recommendations(payload) == ["Use parameterized queries"]

    def test_field_order_is_fixed(self):
        payload = {
            "structural_issues": [{"title": "second"}],
            "critical_issues": ["first"],
        }
        assert extract_issues(payload) == ["first", "second"]

    def test_missing_or_wrong_type_ignored(self):
        assert extract_issues({"critical_issues": "not a list"}) == []
        assert extract_recommendations({}) == []
        assert extract_issues(None) == []
