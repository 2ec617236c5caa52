"""Output formatters for scan results."""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mobsentry.core.models import ScanResult, Severity

# Severity colors for visual distinction
SEVERITY_COLORS = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
}


def format_json(result: ScanResult) -> str:
    """Serialize a scan result with the camelCase keys used by the cache file."""
    return result.model_dump_json(by_alias=True, exclude_none=True, indent=2)


def format_table(result: ScanResult, title: str = "Scan Results") -> str:
    """Render a scan result as a Rich table followed by a summary."""
    table = Table(title=escape(title), show_header=True, header_style="bold cyan")

    table.add_column("Severity", justify="center")
    table.add_column("Rule", style="cyan")
    table.add_column("Location", style="white", no_wrap=False)
    table.add_column("Description", style="white")

    for finding in result.findings:
        style = SEVERITY_COLORS.get(finding.severity, "white")
        location = finding.file_path
        if finding.line is not None:
            location = f"{location}:{finding.line}"
        table.add_row(
            f"[{style}]{finding.severity.value}[/{style}]",
            finding.rule_id,
            escape(location),
            escape(finding.description),
        )

    string_io = StringIO()
    console = Console(file=string_io, force_terminal=True, width=120)
    console.print(table)

    summary_lines = [
        "",
        "[bold]Scan Summary[/bold]",
        f"  Files scanned: {result.scanned_files}",
        f"  Total findings: {len(result.findings)}",
    ]
    if result.skipped_files:
        summary_lines.append(f"  Files skipped: {result.skipped_files}")
    if result.cached_files:
        summary_lines.append(f"  Files from cache: {result.cached_files}")

    if result.findings:
        summary_lines.append("  By severity:")
        for severity in Severity:
            count = sum(1 for f in result.findings if f.severity == severity)
            if count > 0:
                style = SEVERITY_COLORS[severity]
                summary_lines.append(f"    [{style}]{severity.value}: {count}[/{style}]")

    for line in summary_lines:
        console.print(line)

    return string_io.getvalue()
