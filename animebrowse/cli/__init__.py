"""Command-line tools for animeBrowse.

- ``python -m animebrowse.cli search|top|details|cache`` (see
  :mod:`animebrowse.cli.browse`)
"""
