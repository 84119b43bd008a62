# Rich console output: one findings table per file, then per-rule hints and a summary.

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from invokelint.findings.models import SEVERITIES, Finding

# Remediation hints per rule (shown with --verbose)
RULE_REMEDIATIONS: dict[str, str] = {
    "CC0031": (
        "Replace handler(args) with handler?.Invoke(args), or return/throw "
        "on `if (handler == null)` before the call."
    ),
}

SEVERITY_STYLE = {
    "error": "bold red",
    "warning": "bold yellow",
    "info": "bold blue",
    "hidden": "dim",
}


def display_path(path: str | Path, base: Optional[Path] = None) -> str:
    """Path relative to base (default: cwd) when it lies underneath, else as given."""
    base = base or Path.cwd()
    try:
        return Path(path).resolve().relative_to(base.resolve()).as_posix()
    except ValueError:
        return str(path).replace("\\", "/")


def _findings_table(findings: Sequence[Finding]) -> Table:
    table = Table(box=box.SIMPLE, header_style="bold magenta", padding=(0, 1))
    table.add_column("Position", justify="right", style="dim", no_wrap=True)
    table.add_column("Severity", no_wrap=True)
    table.add_column("Rule", style="dim", no_wrap=True)
    table.add_column("Message")
    table.add_column("Code", style="cyan")
    for f in sorted(findings, key=lambda x: (x.location.line, x.location.column)):
        loc = f.location
        table.add_row(
            f"{loc.line}:{loc.column}",
            Text(f.severity.upper(), style=SEVERITY_STYLE.get(f.severity, "bold")),
            Text(f.rule_id),
            Text(f.message),
            Text(loc.snippet.strip() if loc.snippet else ""),
        )
    return table


def print_findings(
    findings: Sequence[Finding],
    analyzed_files: Sequence[Path] | None = None,
    verbose: bool = False,
    console: Console | None = None,
) -> None:
    """
    Print findings grouped by file. With verbose, each reported rule's fix
    hint and help link follow once; with analyzed_files, files without
    findings are listed as clean in the summary.
    """
    console = console or Console()

    by_file: dict[str, list[Finding]] = {}
    for f in findings:
        by_file.setdefault(str(f.location.path), []).append(f)

    for path in sorted(by_file):
        console.print()
        console.rule(Text(display_path(path), style="bold cyan"), align="left")
        console.print(_findings_table(by_file[path]))

    if verbose:
        reported = {f.rule_id: f for f in findings}
        for rule_id in sorted(reported):
            if rule_id in RULE_REMEDIATIONS:
                console.print(Text(f"[Fix] [{rule_id}] {RULE_REMEDIATIONS[rule_id]}", style="dim"))
            if reported[rule_id].help_uri:
                console.print(Text(f"[Help] {reported[rule_id].help_uri}", style="dim"))

    if analyzed_files:
        _print_files(by_file, analyzed_files, console)
    _print_summary(findings, console)


def _print_files(by_file: dict[str, list[Finding]], analyzed_files: Sequence[Path], console: Console) -> None:
    table = Table(title="Files", box=box.ROUNDED, header_style="bold cyan")
    table.add_column("File")
    table.add_column("Findings", justify="right")
    for p in sorted(analyzed_files, key=lambda p: (str(p) not in by_file, str(p))):
        count = len(by_file.get(str(p), ()))
        table.add_row(display_path(p), Text(str(count), style="bold red") if count else Text("clean", style="green"))
    console.print()
    console.print(table)


def _print_summary(findings: Sequence[Finding], console: Console) -> None:
    if not findings:
        console.print(Panel("[green]No issues found.[/green]", title="invokelint", border_style="green"))
        return
    counts = Counter(f.severity for f in findings)
    total = len(findings)
    parts = [f"[bold]{total} finding{'s' if total != 1 else ''}[/bold]"]
    parts += [f"[{SEVERITY_STYLE[s]}]{counts[s]} {s}[/]" for s in SEVERITIES if counts[s]]
    console.print(Panel(" | ".join(parts), title="invokelint", border_style="yellow"))
