"""Run the catalog sync service with uvicorn."""

import uvicorn

from src.catalog_sync.runtime.context import get_config


def main() -> None:
    config = get_config()
    uvicorn.run(
        "src.catalog_sync.api.http.app:app",
        host=config.app.host,
        port=config.app.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
