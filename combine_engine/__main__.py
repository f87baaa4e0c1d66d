"""Run the API server: ``python -m combine_engine``."""

import uvicorn

from .config import API_HOST, API_PORT


def main():
    from .app import app, logger
    from .logging_config import safe_log

    logger.info(safe_log("[START] Starting uvicorn server..."))
    uvicorn.run(app, host=API_HOST, port=API_PORT, log_level="info")


if __name__ == "__main__":
    main()
