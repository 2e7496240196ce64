"""vidsource package entrypoint."""

from vidsource.cli.app import main as _cli_main


def main() -> None:
    """Run the vidsource CLI."""
    _cli_main()
