from __future__ import annotations

from cassatodo.cli import main

if __name__ == "__main__":
    main()
