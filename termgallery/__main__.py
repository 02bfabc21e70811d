"""Module entrypoint for ``python -m termgallery``.

Argument parsing and session setup live in ``termgallery.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
