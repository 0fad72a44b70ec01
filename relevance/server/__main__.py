"""
Relevance Engine API entrypoint: python -m relevance.server
"""

import uvicorn

from ..settings import load_settings
from .app import create_app


def main() -> None:
    settings = load_settings()
    uvicorn.run(create_app(settings=settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
