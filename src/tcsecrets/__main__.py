"""Allow ``python -m tcsecrets``."""

from .cli import main

main()
