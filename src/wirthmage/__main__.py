"""Wirthmage command-line entry point (``python -m wirthmage``)."""

from __future__ import annotations

from wirthmage.cli import main

if __name__ == "__main__":
    main()
