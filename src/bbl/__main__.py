"""Allow running bbl as a module: python -m bbl."""

from bbl.cli import main

if __name__ == "__main__":
    main()
