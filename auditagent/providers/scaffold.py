import json
from typing import List

from auditagent.core.models import (
    ProviderDescriptor, VulnerabilitySkill, MiniPrompt, SkillIterationResult,
)
from auditagent.core.sandbox import Sandbox
from auditagent.providers.base import BaseProvider, Messages


class ScaffoldProvider(BaseProvider):
    """Offline provider: no model calls, every skill ends as 'scaffolded'."""

    name = "scaffold"

    def __init__(self, logger=None):
        self.logger = logger

    def describe(self) -> ProviderDescriptor:
        return ProviderDescriptor(
            name=self.name,
            model=None,
            notes="Scaffolding-only provider. No external AI calls are performed.",
        )

    def exchange(self, messages: Messages) -> str:
        return json.dumps({"action": "final", "status": "scaffolded", "findings": []})

    def analyze(self, skill: VulnerabilitySkill, prompt: MiniPrompt,
                source_references: List[str], sandbox: Sandbox) -> SkillIterationResult:
        return SkillIterationResult(
            skill_id=skill.id,
            status="scaffolded",
            findings=[],
            next_prompt=MiniPrompt(
                skill_id=skill.id,
                text=(f"Scaffold follow-up placeholder for skill '{skill.id}' "
                      f"based on prompt '{prompt.text}'."),
            ),
        )
