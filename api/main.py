"""Run the API with uvicorn: ``python -m api.main``."""

import uvicorn

from config import settings


def main():
    uvicorn.run(
        "api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
