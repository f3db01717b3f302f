"""
Module entry point for: python -m promptscan

Allows running the scanner directly as a module:
    python -m promptscan scan <source> [options]
    python -m promptscan copy <source> <button_text>
    python -m promptscan serve [options]
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
