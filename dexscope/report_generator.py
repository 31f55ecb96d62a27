"""
Report generator – produces JSON and rich terminal dashboard outputs.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from dexscope.mev_classifier import describe_mev_type
from dexscope.pipeline import BlockAnalysis


class ReportGenerator:
    """Generates analysis reports for one or more analyzed blocks."""

    _CONFIDENCE_STYLE = {
        "PERFECT": "bold magenta",
        "HIGH": "bold red",
        "MEDIUM": "yellow",
    }

    def __init__(self, output_dir: str = "./output", console: Console | None = None):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.console = console or Console()

    # ------------------------------------------------------------------
    # JSON report
    # ------------------------------------------------------------------

    def generate_json_report(
        self,
        label: str,
        analyses: Sequence[BlockAnalysis],
        chart_paths: list[str],
        profile_name: str = "permissive",
    ) -> str:
        """Write a JSON report and return the file path."""
        report = {
            "generated_at": datetime.now(tz=timezone.utc).isoformat(),
            "label": label,
            "profile": profile_name,
            "totals": self._totals(analyses),
            "blocks": [a.to_dict() for a in analyses],
            "chart_files": chart_paths,
        }

        filename = f"report_{label}_{self._ts()}.json"
        out_path = self.output_dir / filename
        out_path.write_text(json.dumps(report, indent=2, default=str), encoding="utf-8")
        return str(out_path)

    # ------------------------------------------------------------------
    # Terminal dashboard
    # ------------------------------------------------------------------

    def print_terminal_dashboard(self, analyses: Sequence[BlockAnalysis]) -> None:
        console = self.console
        totals = self._totals(analyses)

        console.print(
            Panel(
                f"[bold cyan]🔎 dexscope[/bold cyan]  "
                f"Blocks: [white]{totals['blocks']}[/white]  │  "
                f"Transactions: [white]{totals['transactions']}[/white]  │  "
                f"Swaps: [green]{totals['swaps']}[/green]  │  "
                f"Arbitrage: [yellow]{totals['arbitrage_opportunities']}[/yellow]  │  "
                f"MEV: [red]{totals['mev_findings']}[/red]",
                title="Block Analysis Report",
                border_style="cyan",
            )
        )

        for analysis in analyses:
            if analysis.mev_skipped:
                console.print(
                    f"[yellow]⚠ Slot {analysis.slot}: transaction order unknown, MEV classification skipped[/yellow]"
                )
            self._print_swaps(analysis)
            self._print_arbitrage(analysis)
            self._print_mev(analysis)

    def _print_swaps(self, analysis: BlockAnalysis) -> None:
        if not analysis.records:
            self.console.print(f"[dim]Slot {analysis.slot}: no swaps detected[/dim]")
            return

        table = Table(title=f"Swaps – slot {analysis.slot}", box=box.ROUNDED, border_style="dim")
        table.add_column("#", justify="right")
        table.add_column("Signature", style="dim")
        table.add_column("Wallet")
        table.add_column("Class")
        table.add_column("Trade Path")
        table.add_column("Platforms")
        for r in analysis.records:
            style = "green" if r.confidence_class.value == "definite" else "yellow"
            table.add_row(
                str(r.tx_index if r.tx_index is not None else "-"),
                f"{r.signature[:12]}…",
                f"{(r.initiator_wallet or '?')[:8]}…",
                f"[{style}]{r.confidence_class.value}[/{style}]",
                r.trade_path or "[dim]no path[/dim]",
                ", ".join(r.platforms),
            )
        self.console.print(table)

    def _print_arbitrage(self, analysis: BlockAnalysis) -> None:
        if not analysis.opportunities:
            return
        table = Table(title="Arbitrage Opportunities", box=box.ROUNDED, border_style="dim")
        table.add_column("Sender")
        table.add_column("Txns", justify="right")
        table.add_column("Platforms")
        table.add_column("Round-trip mints")
        table.add_column("Confidence", justify="right")
        for o in analysis.opportunities:
            style = self._CONFIDENCE_STYLE.get(o.confidence.value, "white")
            table.add_row(
                f"{o.sender[:8]}…",
                str(o.transaction_count),
                ", ".join(sorted(o.platforms_used)),
                ", ".join(f"{t.mint[:6]} ({t.buy_count}b/{t.sell_count}s)" for t in o.round_trip_tokens),
                f"[{style}]{o.confidence.value}[/{style}]",
            )
        self.console.print(table)

    def _print_mev(self, analysis: BlockAnalysis) -> None:
        findings = analysis.findings
        if not findings:
            return
        table = Table(title="MEV Findings", box=box.ROUNDED, border_style="red")
        table.add_column("Signature", style="dim")
        table.add_column("Type", style="bold red")
        table.add_column("Confidence", justify="right")
        table.add_column("Bot")
        table.add_column("Description", style="dim")
        for f in findings:
            table.add_row(
                f"{f.signature[:12]}…",
                f.mev_type.value,
                f"{f.confidence}",
                f"{(f.bot_address or '?')[:8]}…",
                describe_mev_type(f.mev_type),
            )
        self.console.print(table)

    # ------------------------------------------------------------------
    # Utility
    # ------------------------------------------------------------------

    @staticmethod
    def _totals(analyses: Sequence[BlockAnalysis]) -> dict:
        return {
            "blocks": len(analyses),
            "transactions": sum(a.total_transactions for a in analyses),
            "swaps": sum(len(a.records) for a in analyses),
            "arbitrage_opportunities": sum(len(a.opportunities) for a in analyses),
            "mev_findings": sum(len(a.findings) for a in analyses),
        }

    @staticmethod
    def _ts() -> str:
        return datetime.now().strftime("%Y%m%d_%H%M%S")
