"""Command-line entrypoint that serves the API."""

import uvicorn

from food_journal.config import Settings


def main() -> None:
    """Run the API server on the configured host and port."""
    settings = Settings()
    uvicorn.run(
        "food_journal.api.asgi:build_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        limit_concurrency=settings.max_connections,
        reload=False,
    )


if __name__ == "__main__":
    main()
