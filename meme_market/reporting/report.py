"""
Markdown report generation.

This module renders a dashboard snapshot as a markdown report with the
correlation summary, its interpretation and the peak days of each series.
"""

from datetime import datetime
from typing import Optional
from meme_market.dashboard import DashboardSnapshot, Highlight


class Report:
    """
    Renders a DashboardSnapshot as markdown text.

    The report is returned as a string; callers decide where it goes.
    """

    def __init__(self, symbol: str = "NIFTY 50", p_value_method: str = "approximate"):
        """
        Initialize report renderer.

        Args:
            symbol: Display name of the index
            p_value_method: How the p-value was computed ("approximate" or "exact")
        """
        self.symbol = symbol
        self.p_value_method = p_value_method

    def render(self, snapshot: DashboardSnapshot, chart_path: Optional[str] = None) -> str:
        """
        Render the complete markdown report.

        Args:
            snapshot: Dashboard snapshot to render
            chart_path: Optional chart image to embed

        Returns:
            Markdown text
        """
        content = self._generate_header(snapshot)
        content += self._generate_correlation_section(snapshot)
        content += self._generate_highlights_section(snapshot)
        if chart_path:
            content += f"## Chart\n\n![Volatility vs Popularity]({chart_path})\n\n---\n\n"
        content += self._generate_warnings_section(snapshot)
        content += self._generate_footer()
        return content

    def _generate_header(self, snapshot: DashboardSnapshot) -> str:
        """Generate report header."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        return f"""# Meme Market Report: {self.symbol}

**Time Range:** last {snapshot.days} days
**Generated:** {timestamp}

---

"""

    def _generate_correlation_section(self, snapshot: DashboardSnapshot) -> str:
        """Generate correlation summary section."""
        correlation = snapshot.correlation
        section = "## Correlation Summary\n\n"

        section += "> **What is this?** The Pearson coefficient measures how closely daily "
        section += "market volatility and daily meme engagement move together, from -1 "
        section += "(opposite) through 0 (unrelated) to +1 (in lockstep). Only days present "
        section += "in both series are compared.\n\n"

        if correlation.sample_size == 0:
            section += "*No overlapping days between the stock and meme data.*\n\n---\n\n"
            return section

        section += "| Metric | Value |\n"
        section += "|--------|-------|\n"
        section += f"| Coefficient | {correlation.coefficient:.4f} |\n"
        section += f"| Strength | {correlation.strength} |\n"
        section += f"| p-value | {correlation.p_value:.2f} |\n"
        section += f"| Sample Size | {correlation.sample_size} |\n\n"

        section += f"**Interpretation:** {snapshot.insights.interpretation}\n\n"

        if self.p_value_method == "exact":
            section += "> *The p-value is a two-sided Student's t test of zero correlation.*\n\n"
        else:
            section += "> *The p-value is an approximate indicator for display, not a rigorous "
            section += "significance test.*\n\n"
        section += "---\n\n"
        return section

    def _format_highlight(self, label: str, highlight: Optional[Highlight]) -> str:
        if highlight is None:
            return f"- **{label}:** n/a\n"
        return f"- **{label}:** {highlight.date.strftime('%d %b %Y')} ({highlight.value:.2f})\n"

    def _generate_highlights_section(self, snapshot: DashboardSnapshot) -> str:
        """Generate peak-day highlights section."""
        section = "## Highlights\n\n"
        section += self._format_highlight("Highest Volatility", snapshot.insights.highest_volatility)
        section += self._format_highlight("Highest Meme Popularity", snapshot.insights.highest_popularity)
        section += f"- **Trading days:** {len(snapshot.volatility)}\n"
        section += f"- **Meme days:** {len(snapshot.popularity)}\n\n"
        section += "---\n\n"
        return section

    def _generate_warnings_section(self, snapshot: DashboardSnapshot) -> str:
        """Generate data warnings section."""
        if not snapshot.warnings:
            return ""
        section = "## Data Warnings\n\n"
        for warning in snapshot.warnings:
            section += f"- {warning}\n"
        section += "\n---\n\n"
        return section

    def _generate_footer(self) -> str:
        """Generate report footer."""
        return "*Data: Yahoo Finance (NIFTY 50), Reddit top posts.*\n"
