"""Allow `python -m morp`."""
from morp_cli.main import cli

if __name__ == "__main__":
    cli()
