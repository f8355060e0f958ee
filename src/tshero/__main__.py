"""Console-script entry point for :mod:`tshero`."""

from __future__ import annotations

from tshero.cli import create_app


def main() -> None:
    """Execute the CLI application."""

    app = create_app()
    app(prog_name="tshero")


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    main()


__all__ = ["main"]
