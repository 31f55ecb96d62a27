#!/usr/bin/env python3
"""
dexscope – CLI Entry Point

Usage:
    python block_scan.py                      # latest finalized slot
    python block_scan.py <slot>
    python block_scan.py <slot> --slots 5
    python block_scan.py --input block.json
    python block_scan.py <slot> --profile strict --no-charts
    python block_scan.py <slot> --discover --json-only
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from rich import print as rprint
from rich.logging import RichHandler

from dexscope.errors import ScopeFetchError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="block_scan",
        description="dexscope – detect swaps, arbitrage and MEV patterns in Solana blocks.",
    )
    parser.add_argument("slot", nargs="?", type=int, default=None, help="Slot to analyse (default: latest)")
    parser.add_argument(
        "--slots",
        type=int,
        default=1,
        metavar="N",
        help="Number of consecutive slots to analyse, starting at SLOT",
    )
    parser.add_argument(
        "--input",
        default=None,
        metavar="FILE",
        help="Analyse a saved getBlock result (or a JSON list of transactions) instead of the RPC",
    )
    parser.add_argument(
        "--profile",
        choices=["permissive", "strict"],
        default=None,
        help="Threshold profile (default: from .env or permissive)",
    )
    parser.add_argument("--workers", type=int, default=None, help="Swap detection worker threads")
    parser.add_argument("--timeout", type=float, default=None, metavar="SECS", help="Per-slot analysis deadline")
    parser.add_argument(
        "--discover",
        action="store_true",
        help="Name unknown programs seen in probable swaps by prefix and re-analyse",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        metavar="DIR",
        help="Override the output directory for reports and charts (default: from .env or ./output)",
    )
    parser.add_argument("--no-charts", action="store_true", help="Skip chart generation")
    parser.add_argument(
        "--json-only",
        action="store_true",
        help="Only write JSON report; skip the terminal dashboard",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress at INFO level")
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _load_input_file(path: str) -> dict[int, list]:
    """Read a saved block or transaction list and return {slot: transactions}."""
    from dexscope.normalizer import MALFORMED_ENTRY_ERRORS, normalize_block, normalize_transaction

    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ScopeFetchError(f"Cannot read {path}: {exc}") from exc

    # Bare RPC envelope
    if isinstance(payload, dict) and "result" in payload:
        payload = payload["result"] or {}

    if isinstance(payload, dict):
        slot = payload.get("slot")
        if slot is None:
            slot = payload.get("parentSlot", -1) + 1
        return {slot: normalize_block(payload, slot=slot)}

    if isinstance(payload, list):
        scopes: dict[int, list] = {}
        for position, raw in enumerate(payload):
            try:
                index = raw.get("txIndex", position) if isinstance(raw, dict) else position
                tx = normalize_transaction(raw, tx_index=index)
            except MALFORMED_ENTRY_ERRORS as exc:
                logging.getLogger(__name__).warning("Skipping entry #%d: %s", position, exc)
                continue
            scopes.setdefault(tx.slot if tx.slot is not None else -1, []).append(tx)
        return scopes

    raise ScopeFetchError(f"Unrecognised input format in {path}")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    # ── Load configuration ───────────────────────────────────────────────
    try:
        from dexscope.config import get_config
        cfg = get_config()
    except EnvironmentError as exc:
        rprint(f"[bold red]Configuration error:[/bold red] {exc}")
        return 1

    from dexscope.constants import KNOWN_MEV_BOTS
    from dexscope.pipeline import BlockAnalyzer, analyze_scopes
    from dexscope.profiles import get_profile
    from dexscope.registry import VenueRegistry

    output_dir = args.output_dir or cfg.output_dir
    profile = get_profile(args.profile) if args.profile else cfg.profile
    registry = VenueRegistry.default()
    known_bots = KNOWN_MEV_BOTS | cfg.extra_known_bots
    timeout = args.timeout or cfg.scope_timeout

    # ── Fetch data ───────────────────────────────────────────────────────
    if args.input:
        rprint(f"\n[bold cyan]🔍 Analysing file:[/bold cyan] [yellow]{args.input}[/yellow]\n")
        try:
            scopes = _load_input_file(args.input)
        except ScopeFetchError as exc:
            rprint(f"[bold red]Input error:[/bold red] {exc}")
            return 1
    else:
        from dexscope.block_fetcher import BlockFetcher
        fetcher = BlockFetcher(cfg.rpc_url)
        start_slot = args.slot if args.slot is not None else fetcher.get_slot()
        if start_slot is None:
            rprint("[bold red]Could not determine the latest slot from the RPC.[/bold red]")
            return 1
        rprint(f"\n[bold cyan]🔍 Analysing slot(s):[/bold cyan] [yellow]{start_slot}[/yellow] (+{args.slots - 1})\n")
        scopes = {}
        for scope in fetcher.fetch_scopes(start_slot, args.slots):
            if scope.error:
                rprint(f"[yellow]⚠ {scope.error}[/yellow]")
            scopes[scope.slot] = scope.transactions

    # ── Analysis ─────────────────────────────────────────────────────────
    rprint(f"[cyan]→ Detecting swaps, arbitrage and MEV ({profile.name} profile)...[/cyan]")
    analyzer = BlockAnalyzer(registry, profile, known_bots, max_workers=args.workers or cfg.max_workers)
    results = analyze_scopes(analyzer, scopes, timeout=timeout)

    if args.discover:
        unknown = {
            pid for analysis in results.values() for r in analysis.records for pid in r.unknown_programs
        }
        extended = registry.with_discovered(unknown)
        added = set(extended.venues) - set(registry.venues)
        if added:
            for pid in sorted(added):
                rprint(f"  [green]+ discovered venue[/green] {pid} → {extended.venues[pid]}")
            analyzer = BlockAnalyzer(extended, profile, known_bots, max_workers=args.workers or cfg.max_workers)
            results = analyze_scopes(analyzer, scopes, timeout=timeout)
        else:
            rprint("  [dim]No unknown programs matched a known venue prefix.[/dim]")

    analyses = list(results.values())
    aborted = set(scopes) - set(results)
    for slot in sorted(aborted):
        rprint(f"[yellow]⚠ Slot {slot}: analysis aborted, results discarded[/yellow]")

    # ── Visualisations ───────────────────────────────────────────────────
    chart_paths: list[str] = []
    if not args.no_charts:
        rprint("[cyan]→ Generating charts...[/cyan]")
        from dexscope.visualizer import Visualizer
        chart_paths = Visualizer(output_dir).generate_all(analyses)
        for p in chart_paths:
            rprint(f"  [dim]Chart saved:[/dim] {p}")

    # ── Reports ──────────────────────────────────────────────────────────
    from dexscope.report_generator import ReportGenerator
    reporter = ReportGenerator(output_dir)

    label = "_".join(str(s) for s in sorted(results)[:1]) or "empty"
    json_path = reporter.generate_json_report(label, analyses, chart_paths, profile.name)
    rprint(f"\n[green]✓ JSON report:[/green] {json_path}")

    if not args.json_only:
        rprint("")
        reporter.print_terminal_dashboard(analyses)

    rprint("\n[bold green]✓ Analysis complete.[/bold green]\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
