"""Module entry point: python -m pet_walk ..."""

from __future__ import annotations

from pet_walk.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
