"""Allow `python -m leantutor` to start the lesson shell."""

from __future__ import annotations

from .main import main_entry

if __name__ == "__main__":  # pragma: no cover
    main_entry()
