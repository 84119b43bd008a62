from __future__ import annotations

"""
Typer CLI entry point and orchestration of the analysis pipeline.

- Accepts a .cs file or a directory (searched recursively)
- Builds a FileContext for each file
- Runs the enabled rules from config.py
- Reports findings on the console (rich) or as JSON

Exit status is 1 when any finding was reported, 0 otherwise.
"""

import logging
from pathlib import Path
from typing import List, Optional

import typer

from invokelint.analysis.semantics import OperationCanceledError
from invokelint.config import (
    LATEST_LANGUAGE_VERSION,
    Config,
    get_default_config,
    get_enabled_rules,
    parse_severity_overrides,
)
from invokelint.context import load_contexts
from invokelint.csharp.parser import create_parser
from invokelint.findings.models import Finding
from invokelint.reporting.console import print_findings
from invokelint.reporting.json_report import render_json
from invokelint.traversal import find_cs_files, is_csharp_file

logger = logging.getLogger(__name__)

app = typer.Typer(help="invokelint - flags C# delegate invocations that should use ?.Invoke().")

OUTPUT_FORMATS = ("console", "json")


def _collect_cs_files(target: Path) -> List[Path]:
    """
    Resolve a target path into the list of .cs files to analyze.
    """
    if target.is_file():
        if not is_csharp_file(target):
            raise typer.BadParameter(f"Target file must have .cs extension, got: {target}")
        return [target]

    if target.is_dir():
        files = find_cs_files(target)
        if not files:
            logger.warning("No .cs files found under %s", target)
        return files

    raise typer.BadParameter(f"Target path is neither a file nor a directory: {target}")


def _build_config(
    lang_version: int,
    include_generated: bool,
    disable: List[str],
    severity: List[str],
    timeout: Optional[float],
) -> Config:
    config = get_default_config()
    config.language_version = lang_version
    config.analyze_generated_code = include_generated
    config.disabled_rules = set(disable)
    config.timeout = timeout
    try:
        config.severity_overrides = parse_severity_overrides(severity)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--severity") from exc
    return config


def analyze_files(files: List[Path], config: Config) -> List[Finding]:
    """Run every enabled rule over every file; unreadable, cancelled or failing files are logged and skipped."""
    rules = list(get_enabled_rules(config))
    all_findings: List[Finding] = []

    # Unreadable files are logged and left out by load_contexts
    for ctx in load_contexts(files, parser=create_parser()):
        for rule in rules:
            try:
                rule_findings = rule.run(ctx, config)
            except OperationCanceledError:
                logger.warning("Rule %s timed out on %s; no findings reported for it", rule.id, ctx.path)
                continue
            except Exception as exc:  # pragma: no cover - defensive
                logger.exception("Rule %s failed on %s: %s", rule.id, ctx.path, exc)
                continue
            all_findings.extend(rule_findings)

    return all_findings


@app.command()
def analyze(
    target: Path = typer.Argument(
        ...,
        exists=True,
        readable=True,
        resolve_path=True,
        help="C# file or directory to analyze.",
    ),
    lang_version: int = typer.Option(
        LATEST_LANGUAGE_VERSION, "--lang-version", min=1, help="C# language version of the sources."
    ),
    include_generated: bool = typer.Option(
        False, "--include-generated", help="Also analyze generated code (designer files, <auto-generated>)."
    ),
    disable: Optional[List[str]] = typer.Option(None, "--disable", help="Rule id to skip (repeatable)."),
    severity: Optional[List[str]] = typer.Option(
        None, "--severity", help="Severity override as RULE=LEVEL, e.g. CC0031=error (repeatable)."
    ),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=0.0, help="Per-file time limit in seconds."),
    output_format: str = typer.Option("console", "--format", help="Output format: console or json."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show remediation hints and help links."),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)."),
) -> None:
    """
    Analyze a single C# file or all .cs files under a directory.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise typer.BadParameter(f"Unknown log level: {log_level}", param_hint="--log-level")
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if output_format not in OUTPUT_FORMATS:
        raise typer.BadParameter(f"Expected one of {', '.join(OUTPUT_FORMATS)}", param_hint="--format")

    config = _build_config(lang_version, include_generated, disable or [], severity or [], timeout)
    if not get_enabled_rules(config):
        typer.echo("No rules are enabled in the current configuration.", err=True)
        raise typer.Exit(code=2)

    files = _collect_cs_files(target)
    findings = analyze_files(files, config)

    if output_format == "json":
        typer.echo(render_json(findings, files))
    else:
        print_findings(findings, analyzed_files=files, verbose=verbose)

    if findings:
        raise typer.Exit(code=1)


def main() -> None:
    """Entry point for the `invokelint` script and `python -m invokelint.main`."""
    app()


if __name__ == "__main__":
    main()
