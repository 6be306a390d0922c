import asyncio
import logging
import sys

import uvicorn
from pytest import main as pytest_main

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def start_dev_server() -> None:
    logger.info("Starting development server with reload")
    uvicorn.run("quizmaster.main:app", host="0.0.0.0", port=8000, reload=True)


def start_prod_server() -> None:
    """Run the API without reload."""
    logger.info("Starting production server")
    uvicorn.run("quizmaster.main:app", host="0.0.0.0", port=8000)


def initialize_db() -> None:
    from quizmaster.db.session import init_db

    logger.info("Creating document table")
    asyncio.run(init_db())
    logger.info("Database initialization completed")


def run_tests() -> None:
    sys.exit(pytest_main(sys.argv[1:]))


def run_coverage() -> None:
    logger.info("Running test coverage")
    sys.exit(
        pytest_main(
            ["--cov=quizmaster", "--cov-report=term-missing", "--no-cov-on-fail"]
        ),
    )
