"""Entry point: python -m clientgen generate openapi.yaml -o generated"""

from __future__ import annotations

from .cli import main

if __name__ == "__main__":
    main()
