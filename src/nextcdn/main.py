"""Application entry point for the nextcdn server."""

from nextcdn.app import App
from nextcdn.config import Config
from nextcdn.logging import setup_logging
from nextcdn.web.runner import run_server


def main() -> None:
    config = Config()  # type: ignore[call-arg]
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
