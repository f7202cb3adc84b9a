"""Entry point for running tbhiv_registry as a module.

This allows the package to be executed as:
    python -m tbhiv_registry
"""

from tbhiv_registry.cli.main import cli

if __name__ == "__main__":
    cli()
