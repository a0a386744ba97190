"""Run the Items API under uvicorn: `python -m itemsapi`."""

import uvicorn

from itemsapi.config import settings


def main() -> None:
    uvicorn.run(
        "itemsapi.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
