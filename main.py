"""Entry point for Music Memory: rank your albums, artists and songs by duel."""

import logging

from music_memory.config import LOG_LEVEL


def main():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from music_memory.ui.app import run_app

    run_app()


if __name__ == "__main__":
    main()
