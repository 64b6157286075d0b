"""Markdown vulnerability report."""

from datetime import datetime, timezone
from typing import List, Optional

from auditagent.core.models import AnalysisState, VulnerabilityFinding

REPORT_TEMPLATE = """# Vulnerability Report

> Generated by an AI-assisted audit. Findings are leads for manual review,
> not confirmed vulnerabilities.

- Generated at: {{ generated_at }}
- Provider: {{ provider }}
- Read scope: {{ read_scope }}
- Skills processed: {{ iterations }}

## Source files

{{ source_files }}

## Findings

{{ findings_markdown }}
"""


def render_finding(finding: VulnerabilityFinding) -> str:
    lines = [
        f"- **{finding.title}** (`{finding.severity}`)",
        f"  - Summary: {finding.summary}",
        f"  - Recommendation: {finding.recommendation}",
    ]
    lines += [f"  - Evidence: {e}" for e in finding.evidence]
    if finding.location:
        lines.append(f"  - Location: {finding.location}")
    return "\n".join(lines)


def render_findings_markdown(findings: List[VulnerabilityFinding]) -> str:
    if not findings:
        return "- *(none)*"
    return "\n".join(render_finding(f) for f in findings)


def render_report_markdown(state: AnalysisState, generated_at: Optional[str] = None) -> str:
    generated_at = generated_at or datetime.now(timezone.utc).isoformat()
    provider = state.provider.name
    if state.provider.model:
        provider += f" ({state.provider.model})"
    sources = "\n".join(f"- {s}" for s in state.source_files) or "- (none)"

    return (REPORT_TEMPLATE
            .replace("{{ generated_at }}", generated_at)
            .replace("{{ provider }}", provider)
            .replace("{{ read_scope }}", state.permission_prompt.read_scope)
            .replace("{{ iterations }}", str(len(state.iterations)))
            .replace("{{ source_files }}", sources)
            .replace("{{ findings_markdown }}", render_findings_markdown(state.findings())))
