"""Dashboard query package."""

from subtracker.queries.dashboard import DashboardQuery, build_view, summarize

__all__ = ["DashboardQuery", "build_view", "summarize"]
