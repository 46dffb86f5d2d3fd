"""
Entry point for the filestream package.
This allows running the app directly with 'python -m filestream'.
"""

import argparse

import uvicorn

from filestream.config import get_settings
from filestream.main import create_app
from filestream.utils.logger import get_logger

logger = get_logger(__name__)


def parse_args(argv=None):
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Run the filestream upload API")
    parser.add_argument("--host", default=settings.HOST, help="HTTP network host")
    parser.add_argument("--addr", type=int, default=settings.APP_PORT, help="HTTP network port")
    parser.add_argument("--debug", action="store_true", default=settings.DEBUG, help="Enable debug mode")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    settings = get_settings().model_copy(update={"DEBUG": args.debug})

    logger.info(f"Starting FastAPI application on {args.host}:{args.addr}")
    uvicorn.run(
        create_app(settings),
        host=args.host,
        port=args.addr,
        log_level="debug" if args.debug else "info",
    )


if __name__ == "__main__":
    main()
