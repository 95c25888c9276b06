"""Entry point for running reviewgen as a module."""

from .cli import app


def main() -> None:
    """Main entry point for the reviewgen CLI application."""
    app()


if __name__ == "__main__":
    main()
