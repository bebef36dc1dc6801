"""Tests des tâches déléguées à l'hôte."""

import json

from tenth_man.agents.delegation import (
    READ_ONLY_TOOLS,
    build_subagent_instruction,
    verdict_from_subagent_output,
)
from tenth_man.models import (
    AgentAssignment,
    AgentEngine,
    AgentRole,
    AgentStatus,
    Decision,
    InvocationMode,
)


class TestBuildSubagentInstruction:
    """Tests pour build_subagent_instruction."""

    def test_self_contained_prompt(self, sample_review_input):
        assignment = AgentAssignment(
            role=AgentRole.ARCHITECTURE_CRITIC,
            engine=AgentEngine.CLAUDE,
            model="opus",
            via=InvocationMode.SUBAGENT_PROMPT,
        )
        instruction = build_subagent_instruction(assignment, sample_review_input)

        assert instruction.role == AgentRole.ARCHITECTURE_CRITIC
        assert instruction.model == "opus"
        assert instruction.tools == list(READ_ONLY_TOOLS)
        assert "Architecture Critic" in instruction.prompt
        assert sample_review_input.proposed_changes in instruction.prompt
        assert "- src/auth/login.py" in instruction.prompt
        assert "- docs/auth.md" in instruction.prompt
        assert "structural_issues" in instruction.prompt


class TestVerdictFromSubagentOutput:
    """Tests pour verdict_from_subagent_output."""

    def test_text_output(self):
        text = "Here you go:\n```json\n" + json.dumps({
            "verdict": "Proceed", "confidence": 0.7, "recommendations": ["add tests"],
        }) + "\n```"
        verdict = verdict_from_subagent_output(AgentRole.PRAGMATIST, text, model="opus")

        assert verdict.status == AgentStatus.COMPLETED
        assert verdict.engine == AgentEngine.CLAUDE
        assert verdict.decision == Decision.PROCEED
        assert verdict.confidence == 0.7

    def test_dict_output(self, da_payload):
        verdict = verdict_from_subagent_output(AgentRole.DEVILS_ADVOCATE, da_payload)

        assert verdict.decision == Decision.BLOCK
        assert verdict.raw_output == da_payload

    def test_garbage_output_uses_fallback(self):
        verdict = verdict_from_subagent_output(AgentRole.DEVILS_ADVOCATE, "no json at all")

        assert verdict.status == AgentStatus.COMPLETED
        assert verdict.decision == Decision.PROCEED_WITH_CHANGES
        assert verdict.confidence == 0.4
        assert verdict.raw_output["reasoning"].startswith("[Devil's Advocate]")

    def test_huge_integer_confidence_defaults(self):
        text = '{"verdict": "block", "confidence": 1' + "0" * 400 + "}"
        verdict = verdict_from_subagent_output(AgentRole.PRAGMATIST, text)

        assert verdict.status == AgentStatus.COMPLETED
        assert verdict.decision == Decision.BLOCK
        assert verdict.confidence == 0.5
