"""
Tests for report generation.

Tests cover:
- Sections present in the markdown report
- Empty-sample and warning rendering
- Chart generation
"""

import tempfile
from datetime import date
from pathlib import Path
from meme_market.dashboard import DashboardSnapshot, build_insights
from meme_market.entities import CorrelationResult, PopularityPoint, VolatilityPoint
from meme_market.reporting.charts import plot_volatility_vs_popularity
from meme_market.reporting.report import Report


def _series():
    volatility = [VolatilityPoint(date(2024, 1, d), v) for d, v in [(1, 1.5), (2, 2.0), (3, 2.5)]]
    popularity = [PopularityPoint(date(2024, 1, d), p) for d, p in [(1, 100.0), (2, 150.0), (3, 200.0)]]
    return volatility, popularity


def _snapshot(correlation, warnings=None):
    volatility, popularity = _series()
    return DashboardSnapshot(
        days=30,
        volatility=volatility,
        popularity=popularity,
        correlation=correlation,
        insights=build_insights(correlation, volatility, popularity),
        warnings=warnings or [],
    )


class TestReport:
    """Tests for Report class."""

    def test_report_sections(self):
        """Test that every section is rendered."""
        content = Report().render(_snapshot(CorrelationResult(0.9876, "Strong", 0.01, 3)))

        assert content.startswith("# Meme Market Report: NIFTY 50")
        assert "**Time Range:** last 30 days" in content
        assert "## Correlation Summary" in content
        assert "| Coefficient | 0.9876 |" in content
        assert "| Strength | Strong |" in content
        assert "| p-value | 0.01 |" in content
        assert "| Sample Size | 3 |" in content
        assert "**Interpretation:** There is a strong positive relationship" in content
        assert "not a rigorous" in content
        assert "## Highlights" in content
        assert "**Highest Volatility:** 03 Jan 2024 (2.50)" in content
        assert "**Highest Meme Popularity:** 03 Jan 2024 (200.00)" in content
        assert "## Data Warnings" not in content

    def test_exact_p_value_note(self):
        """Test that the approximation caveat is omitted for exact p-values."""
        content = Report(p_value_method="exact").render(_snapshot(CorrelationResult(0.9876, "Strong", 0.1, 3)))

        assert "| p-value | 0.10 |" in content
        assert "not a rigorous" not in content
        assert "Student's t" in content

    def test_empty_sample(self):
        """Test the report when no days overlap."""
        content = Report().render(_snapshot(CorrelationResult(0.0, "Very Weak", 1.0, 0)))

        assert "No overlapping days" in content
        assert "| Coefficient |" not in content

    def test_warnings_and_chart(self):
        """Test warning list and embedded chart link."""
        snapshot = _snapshot(CorrelationResult(0.1, "Very Weak", 0.9, 3), warnings=["Meme data unavailable: down"])

        content = Report(symbol="SENSEX").render(snapshot, chart_path="chart.png")

        assert content.startswith("# Meme Market Report: SENSEX")
        assert "- Meme data unavailable: down" in content
        assert "![Volatility vs Popularity](chart.png)" in content


class TestCharts:
    """Tests for chart generation."""

    def test_chart_written(self):
        """Test that the chart file is created."""
        volatility, popularity = _series()

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "charts" / "vol_pop.png"

            result = plot_volatility_vs_popularity(volatility, popularity, str(path))

            assert result == str(path)
            assert path.exists()
            assert path.stat().st_size > 0

    def test_chart_with_empty_series(self):
        """Test that an empty series still produces a chart."""
        volatility, _ = _series()

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "vol_only.png"

            plot_volatility_vs_popularity(volatility, [], str(path))

            assert path.exists()
