from __future__ import annotations

from .projector import build_view, compute_stats, normalize_search, project

__all__ = ["build_view", "compute_stats", "normalize_search", "project"]
