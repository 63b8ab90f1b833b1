"""Command-line tools for the catalog search backend.

- ``python -m src.cli.search`` — run one search against a JSON fixture
  catalogue and print the result items and facets.
"""
