import uvicorn

from cvbot.core.config import settings


def main() -> None:
    uvicorn.run(
        "cvbot.main:app",
        host=settings.app.host,
        port=settings.app.port,
        reload=settings.app.debug,
    )


if __name__ == "__main__":
    main()
