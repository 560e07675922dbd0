"""
Wellness Dashboard - keyword-driven mood inference and adaptive wellness scoring.

This package classifies conversational turns into moods, tracks a smoothed
wellness score per user, and serves the resulting dashboard over HTTP and SSE.
"""

__version__ = "0.1.0"
