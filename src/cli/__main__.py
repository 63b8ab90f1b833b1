"""Allow ``python -m src.cli`` execution; runs the search command."""

from src.cli.search import main

main()
