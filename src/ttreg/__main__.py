from ttreg.cli import cli

cli()
