"""takedown-insights — Classify URL takedown workbooks into dashboard-ready analyses."""

__version__ = "0.2.0"
