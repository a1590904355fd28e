"""Module entrypoint.

Allows:
    python -m querylog_search
"""

from __future__ import annotations

from querylog_search.server.log_server import main

if __name__ == "__main__":
    main()
