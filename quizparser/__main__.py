"""
Module entry point for: python -m quizparser

Allows running the extractor directly as a module:
    python -m quizparser extract <pdf_path> --category <name> [options]
    python -m quizparser info <pdf_path>
    python -m quizparser serve [options]
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
