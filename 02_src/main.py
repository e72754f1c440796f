"""Main entry point for agentflow."""

from pathlib import Path

from dotenv import load_dotenv

from agentflow.cli import app


def main():
    """Run the CLI."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    app()


if __name__ == "__main__":
    main()
