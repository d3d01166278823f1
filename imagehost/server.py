import uvicorn

from imagehost.config import settings


def run() -> None:
    uvicorn.run(
        "imagehost.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
