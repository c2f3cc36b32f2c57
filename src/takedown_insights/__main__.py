"""Allow ``python -m takedown_insights``."""

from takedown_insights.cli import app

if __name__ == "__main__":
    app()
