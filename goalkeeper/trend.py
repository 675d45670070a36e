"""Performance trend: history in, chart data and plotly figure out.

trend_points() is pure and shared by both front ends. The web app embeds
the plotly figure, the terminal app feeds the scores to a Sparkline widget.
Both cover the last TREND_DAYS records on a 0-100 axis.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from html import escape

import plotly.graph_objects as go

from goalkeeper.models import DailyRecord

TREND_DAYS = 7
EMPTY_TREND = "No history data available yet."

LINE_COLOR = "#4f46e5"
MUTED_COLOR = "#6b7280"


@dataclass
class TrendPoint:
    label: str
    score: int


def _label(iso_date: str) -> str:
    try:
        d = datetime.fromisoformat(iso_date)
    except (TypeError, ValueError):
        return iso_date[:10]
    return f"{d.strftime('%a')} {d.day}"


def trend_points(history: list[DailyRecord], days: int = TREND_DAYS) -> list[TrendPoint]:
    """Points for the most recent *days* records, oldest first."""
    if days <= 0:
        return []
    return [TrendPoint(label=_label(r.date), score=r.score) for r in history[-days:]]


def trend_scores(points: list[TrendPoint]) -> list[float]:
    """Scores clamped to the 0-100 axis."""
    return [float(max(0, min(100, p.score))) for p in points]


def trend_figure(points: list[TrendPoint], height: int = 220) -> go.Figure:
    fig = go.Figure(
        go.Scatter(
            x=[p.label for p in points],
            y=[p.score for p in points],
            mode="lines+markers",
            name="Score",
            line=dict(color=LINE_COLOR, width=3),
            marker=dict(size=8, color=LINE_COLOR, line=dict(color="#fff", width=2)),
            hovertemplate="%{x}<br>Score: %{y}<extra></extra>",
        )
    )
    fig.update_layout(
        height=height,
        showlegend=False,
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        margin=dict(l=0, r=0, t=8, b=0),
        font=dict(size=12, color=MUTED_COLOR),
        xaxis=dict(showgrid=False, zeroline=False, type="category"),
        yaxis=dict(range=[0, 100], showgrid=True, gridcolor="#e5e7eb", zeroline=False),
    )
    return fig


def render_trend_html(points: list[TrendPoint]) -> str:
    """HTML fragment for the history page; plotly.js comes from the CDN."""
    if not points:
        return f'<div class="trend-empty">{escape(EMPTY_TREND)}</div>'
    return trend_figure(points).to_html(full_html=False, include_plotlyjs="cdn")
