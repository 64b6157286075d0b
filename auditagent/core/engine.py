from pathlib import Path
from typing import List, Optional, Mapping

import httpx

from auditagent.core.config import AuditConfig
from auditagent.core.discovery import resolve_sources, display_relative
from auditagent.core.errors import ConfigError, SkillAborted
from auditagent.core.models import AnalysisState, VulnerabilitySkill, SkillIterationResult
from auditagent.core.permissions import build_permission_policy
from auditagent.core.sandbox import Sandbox
from auditagent.parsers.skill import load_skills, build_mini_prompt
from auditagent.providers.base import BaseProvider
from auditagent.providers.registry import build_provider
from auditagent.reporters.markdown import render_report_markdown
from auditagent.reporters.state import StateWriter, write_text_atomic


class Engine:
    """Runs every skill, in catalog order, and checkpoints after each one."""

    def __init__(
        self,
        provider: BaseProvider,
        sandbox: Sandbox,
        skills: List[VulnerabilitySkill],
        source_references: List[str],
        writer: StateWriter,
        logger=None,
        fail_fast: bool = False,
    ):
        self.name = "AuditAgent"
        self.version = "1.0.0"
        self.provider = provider
        self.sandbox = sandbox
        self.skills = skills
        self.source_references = source_references
        self.writer = writer
        self.logger = logger
        self.fail_fast = fail_fast

    def run(self) -> AnalysisState:
        state = AnalysisState(
            provider=self.provider.describe(),
            permission_prompt=self.sandbox.policy,
            source_files=list(self.source_references),
        )
        # written before any skill so an interrupted run leaves a valid file
        self.writer.write(state)

        for idx, skill in enumerate(self.skills, start=1):
            if self.logger:
                self.logger.info(f"[{idx}/{len(self.skills)}] Analyzing skill {skill.id} ({skill.severity})")
            result = self.analyze_skill(skill)
            state.iterations.append(result)
            self.writer.write(state)
            self._report(result)

        return state

    def analyze_skill(self, skill: VulnerabilitySkill) -> SkillIterationResult:
        prompt = build_mini_prompt(skill)
        try:
            return self.provider.analyze(skill, prompt, self.source_references, self.sandbox)
        except SkillAborted as e:
            if self.fail_fast:
                raise
            if self.logger:
                self.logger.fail(f"Skill {skill.id} aborted: {e}")
            return SkillIterationResult.failed(skill.id, str(e))

    def _report(self, result: SkillIterationResult):
        if not self.logger:
            return
        for f in result.findings:
            self.logger.finding(f.severity, f.title, result.skill_id, f.location)
        if result.status != "failed" and not result.findings:
            self.logger.info(f"No findings for {result.skill_id} (status {result.status})")


def write_report(state: AnalysisState, path, generated_at: Optional[str] = None) -> Path:
    path = Path(path)
    write_text_atomic(path, render_report_markdown(state, generated_at))
    return path


def run_audit(
    config: AuditConfig,
    logger=None,
    client: Optional[httpx.Client] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AnalysisState:
    """
    Full audit run: discovery, policy, catalog, provider, skills, report.

    Configuration and catalog errors surface before anything is written.
    """
    root = Path(config.project_root)
    if not root.is_dir():
        raise ConfigError(f"Project root is not a directory: {root}")
    provider = build_provider(config, logger=logger, client=client, environ=environ)
    skills = load_skills(config.skills_path, default_requested=config.uses_default_skills_dir)

    sources = resolve_sources(root, config.main_file, config.extensions)
    policy = build_permission_policy(
        config.read_scope, config.interactive_permissions, root, sources)
    sandbox = Sandbox(root, policy)
    references = [display_relative(root, p) for p in sources]

    if logger:
        logger.info(f"Loaded {len(skills)} skills, {len(references)} source files, "
                    f"provider {provider.describe().name}")

    engine = Engine(provider, sandbox, skills, references,
                    StateWriter(config.output_path(config.state_out)),
                    logger=logger, fail_fast=config.fail_fast)
    state = engine.run()
    write_report(state, config.output_path(config.report_out))
    return state
