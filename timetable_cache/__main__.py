"""Run the timetable cache with uvicorn: python -m timetable_cache."""

import uvicorn

from timetable_cache.config import load_config


def main():
    config = load_config()
    uvicorn.run("timetable_cache.app:app", host=config.host, port=config.port)


if __name__ == "__main__":
    main()
