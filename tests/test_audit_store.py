"""Tests du stockage d'audit (.tenth-man/)."""

import json

from tenth_man.integrations import audit_store
from tenth_man.models import (
    AgentRole,
    Consensus,
    Decision,
    Mode,
    ReviewResult,
    Severity,
)


def _result(make_verdict, sample_review_input, audit_id="abc123", decision=Decision.BLOCK,
            severity=Severity.CRITICAL) -> ReviewResult:
    return ReviewResult(
        audit_id=audit_id,
        mode=Mode.STANDARD,
        severity=severity,
        duration_ms=1500,
        agents=[make_verdict(AgentRole.DEVILS_ADVOCATE, decision, 0.9)],
        consensus=Consensus(decision=decision, confidence=0.9, critical_issues=["x"]),
        review_input=sample_review_input,
    )


class TestBootstrap:
    """Tests de l'initialisation du dépôt."""

    def test_directories(self, tmp_path):
        audit_store.ensure_directories(tmp_path)

        assert audit_store.active_dir(tmp_path).is_dir()
        assert audit_store.history_dir(tmp_path).is_dir()

    def test_gitignore_created_then_idempotent(self, tmp_path):
        audit_store.ensure_gitignore(tmp_path)
        audit_store.ensure_gitignore(tmp_path)

        content = (tmp_path / ".gitignore").read_text(encoding="utf-8")
        assert content.count(".tenth-man/") == 1

    def test_gitignore_appended(self, tmp_path):
        (tmp_path / ".gitignore").write_text("node_modules/", encoding="utf-8")
        audit_store.ensure_gitignore(tmp_path)

        lines = (tmp_path / ".gitignore").read_text(encoding="utf-8").splitlines()
        assert lines[0] == "node_modules/"
        assert lines[-1] == ".tenth-man/"

    def test_audit_id_format(self):
        audit_id = audit_store.generate_audit_id()
        assert len(audit_id) == 6
        int(audit_id, 16)


class TestActiveReview:
    """Tests de la revue active."""

    def test_save_and_load_result(self, tmp_path, make_verdict, sample_review_input):
        result = _result(make_verdict, sample_review_input)
        audit_store.save_result(tmp_path, result)

        assert audit_store.load_result(tmp_path) == result

    def test_load_missing_or_corrupt(self, tmp_path):
        assert audit_store.load_result(tmp_path) is None

        path = audit_store.active_dir(tmp_path) / "result.json"
        path.parent.mkdir(parents=True)
        path.write_text("{}", encoding="utf-8")
        assert audit_store.load_result(tmp_path) is None


class TestHistory:
    """Tests de l'archivage et de l'historique."""

    def test_archive_moves_files_and_indexes(self, tmp_path, make_verdict, sample_review_input):
        result = _result(make_verdict, sample_review_input)
        audit_store.write_review_file(tmp_path, "# report")
        (audit_store.active_dir(tmp_path) / "PLAN.md").write_text("# plan", encoding="utf-8")
        audit_store.save_result(tmp_path, result)

        target = audit_store.archive_to_history(tmp_path, result)

        assert target.name.endswith("_abc123")
        assert (target / "review.md").read_text(encoding="utf-8") == "# report"
        assert (target / "plan.md").read_text(encoding="utf-8") == "# plan"
        assert not (audit_store.active_dir(tmp_path) / "REVIEW.md").exists()
        assert audit_store.load_result(tmp_path) is None

        outcome = json.loads((target / "outcome.json").read_text(encoding="utf-8"))
        assert outcome["verdict"] == "block"
        assert outcome["agents_used"][0]["role"] == "devils_advocate"

        entries = audit_store.read_history(tmp_path)
        assert [e.audit_id for e in entries] == ["abc123"]
        assert entries[0].task == sample_review_input.task_description

    def test_history_newest_first_and_filters(self, tmp_path, make_verdict, sample_review_input):
        for audit_id, decision, severity in (
            ("000001", Decision.PROCEED, Severity.HIGH),
            ("000002", Decision.BLOCK, Severity.CRITICAL),
            ("000003", Decision.BLOCK, Severity.HIGH),
        ):
            audit_store.archive_to_history(
                tmp_path,
                _result(make_verdict, sample_review_input, audit_id, decision, severity),
            )

        assert [e.audit_id for e in audit_store.read_history(tmp_path)] == [
            "000003", "000002", "000001",
        ]
        assert [e.audit_id for e in audit_store.read_history(tmp_path, last_n=1)] == ["000003"]
        assert [
            e.audit_id for e in audit_store.read_history(tmp_path, verdict=Decision.BLOCK)
        ] == ["000003", "000002"]
        assert [
            e.audit_id
            for e in audit_store.read_history(
                tmp_path, severity=Severity.HIGH, verdict=Decision.BLOCK
            )
        ] == ["000003"]

    def test_corrupt_index_is_ignored(self, tmp_path):
        path = audit_store.index_path(tmp_path)
        path.parent.mkdir(parents=True)
        path.write_text("not json", encoding="utf-8")

        assert audit_store.read_history(tmp_path) == []
