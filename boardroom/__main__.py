import uvicorn

from boardroom.app.core.config import load_settings


def main():
    settings = load_settings()
    uvicorn.run("boardroom.app.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
