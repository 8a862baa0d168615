"""Entrypoint for `python -m dbfox`."""

from .cli import main


if __name__ == "__main__":
    main()
