from jobrelay.cli import cli

cli()
