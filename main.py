"""Launch the conquest tracking FastAPI server."""

import logging

import uvicorn

from conquest_engine.config import settings


def main():
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("conquest_engine.server:app", host=settings.host, port=settings.port, reload=True)


if __name__ == "__main__":
    main()
