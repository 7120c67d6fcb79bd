from depselect.cli import cli

cli()
