"""Run an RQ worker for quote background jobs."""

from rq import Worker

from app.core.logging import configure_logging
from app.workers.queue import get_queue


def main() -> None:
    configure_logging()
    queue = get_queue()
    Worker([queue], connection=queue.connection).work()


if __name__ == "__main__":
    main()
