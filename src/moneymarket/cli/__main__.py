from moneymarket.cli import cli

cli()
