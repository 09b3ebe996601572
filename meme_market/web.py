"""
FastAPI web interface for the dashboard.

This module serves the correlation snapshot for a time range, the rendered
markdown report, and the data tools over HTTP.
"""

from functools import lru_cache
from typing import Any, Dict

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, field_validator

from meme_market.cache import DataCache
from meme_market.config import load_settings
from meme_market.dashboard import Dashboard
from meme_market.errors import DataError, ToolInputError
from meme_market.reporting.report import Report
from meme_market.tools import TOOLS, call_tool

# Handler hooks that only in-process callers may set
RESERVED_ARGUMENTS = {"fetcher", "client"}

app = FastAPI(title="Meme Market Dashboard")

# Security: CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:8000"],  # Restrict to localhost
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


class ToolRequest(BaseModel):
    arguments: Dict[str, Any] = {}

    @field_validator("arguments")
    @classmethod
    def validate_arguments(cls, v):
        reserved = sorted(RESERVED_ARGUMENTS & set(v))
        if reserved:
            raise ValueError(f"Unsupported arguments: {', '.join(reserved)}")
        return v


@lru_cache(maxsize=1)
def get_dashboard() -> Dashboard:
    """Shared dashboard built from the configured settings."""
    settings = load_settings()
    cache = DataCache(settings.cache_dir, expires_in=settings.cache_expiry)
    return Dashboard(settings, cache=cache)


def _load_snapshot(dashboard: Dashboard, days: int):
    try:
        return dashboard.load(days)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DataError as e:
        raise HTTPException(status_code=502, detail=str(e))


@app.get("/api/correlation")
def get_correlation(days: int = Query(30), dashboard: Dashboard = Depends(get_dashboard)):
    """Correlation, insights and both series for the last `days` days."""
    return _load_snapshot(dashboard, days).to_dict()


@app.get("/api/report", response_class=PlainTextResponse)
def get_report(days: int = Query(30), dashboard: Dashboard = Depends(get_dashboard)):
    """Markdown report for the last `days` days."""
    report = Report(p_value_method=dashboard.settings.p_value_method)
    return report.render(_load_snapshot(dashboard, days))


@app.get("/api/tools")
def list_tools():
    """Names and summaries of the available tools."""
    return {
        "tools": [
            {"name": name, "description": (handler.__doc__ or "").strip().splitlines()[0]}
            for name, handler in TOOLS.items()
        ]
    }


@app.post("/api/tools/{name}")
def run_tool(name: str, request: ToolRequest):
    """Run a tool by name with the given arguments."""
    if name not in TOOLS:
        raise HTTPException(status_code=404, detail=f"Unknown tool: {name}")

    try:
        return call_tool(name, request.arguments)
    except ToolInputError as e:
        raise HTTPException(status_code=400, detail=str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
