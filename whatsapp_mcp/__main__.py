from .server import cli

cli()
