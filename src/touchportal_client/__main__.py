"""Allow ``python -m touchportal_client``."""

from .cli import main

main()
