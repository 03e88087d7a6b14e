"""
possaga CLI entry point.

Install:
    pip install possaga

This creates the 'possaga' command via entry point in pyproject.toml.
"""

from possaga.cli.app import cli


def main():
    """Main entry point for the possaga CLI."""
    cli()


if __name__ == "__main__":
    main()
