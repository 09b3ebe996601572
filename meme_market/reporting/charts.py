"""
Chart generation for reports.

This module creates matplotlib charts comparing the volatility and
popularity series.
"""

from pathlib import Path
from typing import List
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from meme_market.entities import PopularityPoint, VolatilityPoint


def plot_volatility_vs_popularity(
    volatility: List[VolatilityPoint],
    popularity: List[PopularityPoint],
    save_path: str,
    title: str = "NIFTY 50 Volatility vs Meme Popularity"
) -> str:
    """
    Plot both series on a shared date axis with separate y-axes.

    Args:
        volatility: Volatility series
        popularity: Popularity series
        save_path: Path to save chart (parent directories are created)
        title: Chart title

    Returns:
        The path the chart was written to
    """
    fig, ax_vol = plt.subplots(figsize=(12, 6))
    ax_pop = ax_vol.twinx()

    if volatility:
        ax_vol.plot(
            [p.date for p in volatility], [p.volatility for p in volatility],
            label="Volatility", linewidth=2, color="tab:blue"
        )
    if popularity:
        ax_pop.plot(
            [p.date for p in popularity], [p.popularity for p in popularity],
            label="Meme Popularity", linewidth=2, linestyle="--", color="tab:orange"
        )

    ax_vol.set_xlabel("Date")
    ax_vol.set_ylabel("Volatility Score", color="tab:blue")
    ax_pop.set_ylabel("Engagement Score", color="tab:orange")
    ax_vol.set_title(title)
    ax_vol.grid(True, alpha=0.3)

    handles = ax_vol.get_legend_handles_labels()[0] + ax_pop.get_legend_handles_labels()[0]
    if handles:
        ax_vol.legend(handles=handles, loc="upper left")

    fig.autofmt_xdate()
    plt.tight_layout()

    path = Path(save_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)

    return str(path)
