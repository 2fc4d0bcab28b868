"""Allow ``python -m animebrowse.cli`` execution."""

from animebrowse.cli.browse import main

main()
