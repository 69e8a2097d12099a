"""Main entrypoint for aoe2record."""
from aoe2record.cli import app


def main():
    app()


if __name__ == "__main__":
    main()
