from onion_tears.cli import cli

cli()
