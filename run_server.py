# run_server.py
import logging

from cajachica.config import settings as app_settings


def _configure_logging():
    logging.basicConfig(
        level=app_settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


def main():
    _configure_logging()

    import uvicorn
    uvicorn.run("main:app", host=app_settings.HOST, port=app_settings.PORT,
                reload=False, log_level=app_settings.LOG_LEVEL)


if __name__ == "__main__":
    main()
