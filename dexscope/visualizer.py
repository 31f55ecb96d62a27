"""
Visualizer – generates PNG charts for block analysis results.
Uses matplotlib for maximum compatibility.
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Sequence

from dexscope.pipeline import BlockAnalysis

logger = logging.getLogger(__name__)


def _get_matplotlib():
    import matplotlib
    matplotlib.use("Agg")  # non-interactive backend
    import matplotlib.pyplot as plt
    return plt


class Visualizer:
    """Generates PNG charts and saves them to output_dir."""

    _COLORS = {
        "known_bot": "#B71C1C",
        "sandwich": "#F44336",
        "frontrun": "#FF9800",
        "backrun": "#FFC107",
        "arbitrage": "#9C27B0",
        "multiple": "#E91E63",
        "PERFECT": "#9C27B0",
        "HIGH": "#F44336",
        "MEDIUM": "#FF9800",
        "venue": "#2196F3",
        "bg": "#1e1e2e",
        "fg": "#cdd6f4",
        "grid": "#313244",
    }

    def __init__(self, output_dir: str = "./output"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Individual chart methods
    # ------------------------------------------------------------------

    def plot_mev_breakdown(self, analyses: Sequence[BlockAnalysis]) -> str:
        """Pie chart: MEV findings by type."""
        plt = _get_matplotlib()

        counts = Counter(f.mev_type.value for a in analyses for f in a.findings)
        labels = [f"{t}\n({n})" for t, n in counts.items()]
        sizes = list(counts.values())
        colors = [self._COLORS.get(t, "#555555") for t in counts]

        if not sizes:
            sizes = [1]
            labels = ["No MEV"]
            colors = ["#555555"]

        fig, ax = plt.subplots(figsize=(7, 5), facecolor=self._COLORS["bg"])
        ax.set_facecolor(self._COLORS["bg"])

        _, _, autotexts = ax.pie(
            sizes,
            labels=labels,
            colors=colors,
            autopct="%1.1f%%",
            startangle=140,
            textprops={"color": self._COLORS["fg"], "fontsize": 10},
        )
        for at in autotexts:
            at.set_color(self._COLORS["bg"])
            at.set_fontweight("bold")

        ax.set_title("MEV Findings by Type", color=self._COLORS["fg"], fontsize=13, pad=15)

        return self._save(plt, fig, "mev_breakdown.png")

    def plot_arbitrage_confidence(self, analyses: Sequence[BlockAnalysis]) -> str:
        """Bar chart: arbitrage opportunities per confidence level."""
        plt = _get_matplotlib()

        levels = ["PERFECT", "HIGH", "MEDIUM"]
        counts = Counter(o.confidence.value for a in analyses for o in a.opportunities)
        values = [counts.get(level, 0) for level in levels]

        fig, ax = plt.subplots(figsize=(6, 4), facecolor=self._COLORS["bg"])
        ax.set_facecolor(self._COLORS["bg"])

        bars = ax.bar(levels, values, color=[self._COLORS[level] for level in levels], edgecolor="none")
        ax.bar_label(bars, color=self._COLORS["fg"], fontsize=9, padding=3)

        ax.set_ylabel("Wallets", color=self._COLORS["fg"], fontsize=10)
        ax.set_title("Arbitrage Opportunities by Confidence", color=self._COLORS["fg"], fontsize=12)
        self._style_axes(ax, grid_axis="y")

        return self._save(plt, fig, "arbitrage_confidence.png")

    def plot_venue_usage(self, analyses: Sequence[BlockAnalysis], top_n: int = 12) -> str:
        """Horizontal bar chart: swaps touching each venue."""
        plt = _get_matplotlib()

        counts = Counter(p for a in analyses for r in a.records for p in r.platforms)
        top = counts.most_common(top_n) or [("No swaps", 0)]
        names = [name for name, _ in reversed(top)]
        values = [n for _, n in reversed(top)]

        fig, ax = plt.subplots(figsize=(8, max(3, len(names) * 0.5 + 1)), facecolor=self._COLORS["bg"])
        ax.set_facecolor(self._COLORS["bg"])

        bars = ax.barh(names, values, color=self._COLORS["venue"], edgecolor="none")
        ax.bar_label(bars, color=self._COLORS["fg"], fontsize=9, padding=4)

        ax.set_xlabel("Swaps", color=self._COLORS["fg"], fontsize=10)
        ax.set_title(f"Top {top_n} Venues", color=self._COLORS["fg"], fontsize=12)
        self._style_axes(ax, grid_axis="x")

        return self._save(plt, fig, "venue_usage.png")

    # ------------------------------------------------------------------
    # Convenience
    # ------------------------------------------------------------------

    def generate_all(self, analyses: Sequence[BlockAnalysis]) -> list[str]:
        """Generate all charts and return list of file paths."""
        paths: list[str] = []
        for plot in (self.plot_mev_breakdown, self.plot_arbitrage_confidence, self.plot_venue_usage):
            try:
                paths.append(plot(analyses))
            except Exception as exc:  # noqa: BLE001
                logger.warning("%s chart failed: %s", plot.__name__, exc)
        return paths

    def _style_axes(self, ax, grid_axis: str) -> None:
        ax.tick_params(colors=self._COLORS["fg"])
        ax.spines[:].set_color(self._COLORS["grid"])
        getattr(ax, f"{grid_axis}axis").grid(True, color=self._COLORS["grid"], linestyle="--", alpha=0.5)
        ax.set_axisbelow(True)

    def _save(self, plt, fig, filename: str) -> str:
        out_path = str(self.output_dir / filename)
        fig.savefig(out_path, bbox_inches="tight", dpi=120, facecolor=self._COLORS["bg"])
        plt.close(fig)
        return out_path
