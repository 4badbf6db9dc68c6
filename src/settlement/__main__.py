"""Entry point for python -m settlement."""

from .cli import main

if __name__ == "__main__":
    main()
