# promptdoc/main.py
"""Main entry point for the promptdoc CLI application."""
from promptdoc.cli.interface import main_cli


def entrypoint():
    """Function to be called by the script defined in pyproject.toml."""
    main_cli(prog_name="promptdoc")


if __name__ == "__main__":
    entrypoint()
