import logging

import uvicorn

from kvstore.config import HOST, LOG_LEVEL, PORT, SHUTDOWN_TIMEOUT_SECONDS
from kvstore.main import create_app

logger = logging.getLogger("kvstore")


class KVServer(uvicorn.Server):
    """uvicorn server that cancels the stats reporter as soon as an exit signal arrives."""

    def __init__(self, config: uvicorn.Config, reporter=None) -> None:
        super().__init__(config)
        self.reporter = reporter

    def handle_exit(self, sig, frame) -> None:
        if self.reporter is not None and not self.should_exit:
            logger.info("event=shutdown_requested signal=%s", sig)
            # Only signal here; the lifespan shutdown joins the thread.
            self.reporter.cancel()
        super().handle_exit(sig, frame)


def run() -> None:
    app = create_app()
    config = uvicorn.Config(
        app,
        host=HOST,
        port=PORT,
        log_level=LOG_LEVEL.lower(),
        timeout_graceful_shutdown=SHUTDOWN_TIMEOUT_SECONDS,
    )
    server = KVServer(config, reporter=app.state.reporter)

    logger.info("event=server_starting host=%s port=%s", HOST, PORT)
    server.run()
    logger.info("event=server_stopped")


if __name__ == "__main__":
    run()
