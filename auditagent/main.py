import argparse
import sys
from auditagent.core.config import (
    AuditConfig, PROVIDERS, REASONING_EFFORTS,
    DEFAULT_STATE_OUT, DEFAULT_REPORT_OUT, DEFAULT_MAIN_FILE, DEFAULT_TIMEOUT,
)
from auditagent.core.engine import run_audit
from auditagent.core.errors import AuditError
from auditagent.core.permissions import READ_SCOPES
from auditagent.parsers.skill import DEFAULT_SKILLS_DIR
from auditagent.reporters.console import Log


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="auditagent",
        description="AI-assisted vulnerability audit for Aiken smart contracts (experimental)")
    p.add_argument("--project-root", help="Project root (default: current directory)")
    p.add_argument("--main-file", default=DEFAULT_MAIN_FILE,
                   help="Main protocol file used when no sources are discovered")
    p.add_argument("--ext", action="append",
                   help="Source file extension to audit (repeatable, default: .ak)")
    p.add_argument("--skills-dir", default=DEFAULT_SKILLS_DIR,
                   help="Path to vulnerability skill definitions")
    p.add_argument("--state-out", default=DEFAULT_STATE_OUT,
                   help="Where the incremental analysis state JSON is written")
    p.add_argument("--report-out", default=DEFAULT_REPORT_OUT,
                   help="Where the final vulnerability report markdown is written")
    p.add_argument("--provider", default="scaffold", help=" | ".join(PROVIDERS))
    p.add_argument("--endpoint", help="API endpoint override (default depends on --provider)")
    p.add_argument("--model", help="Model override (default depends on --provider)")
    p.add_argument("--api-key-env",
                   help="API key environment variable override (default depends on --provider)")
    p.add_argument("--reasoning-effort", choices=REASONING_EFFORTS,
                   help="Request reasoning/thinking from models that support it")
    p.add_argument("--ai-logs", action="store_true",
                   help="Stream model output and log agent progress to stderr")
    p.add_argument("--read-scope", default="workspace", choices=READ_SCOPES,
                   help="workspace: any path under the root; strict: discovered sources only")
    p.add_argument("--interactive-permissions", action="store_true",
                   help="Confirm every sandboxed read on the terminal")
    p.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT,
                   help="Per-request HTTP timeout in seconds")
    p.add_argument("--fail-fast", action="store_true",
                   help="Abort the run when a skill fails instead of recording it")
    p.add_argument("-v", "--verbose", action="count", default=1,
                   help="-v, -vv")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    log = Log(verbose=args.verbose, ai_logs=args.ai_logs)
    config = AuditConfig.from_args(args)

    try:
        state = run_audit(config, logger=log)
    except AuditError as e:
        log.fail(str(e))
        return 1

    failed = sum(1 for it in state.iterations if it.status == "failed")
    print("EXPERIMENTAL: Audit complete. "
          f"Iterations processed: {len(state.iterations)}"
          + (f" ({failed} failed)" if failed else ""))
    print(f"Source files analyzed: {len(state.source_files)}")
    print(f"State written to: {config.output_path(config.state_out)}")
    print(f"Report written to: {config.output_path(config.report_out)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
