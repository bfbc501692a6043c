from loguru import logger

CONSOLE_FORMAT = "{message}"
DEBUG_FORMAT = "{time:HH:mm:ss.SSS} | {level: <7} | {message}"


def setup_console_logging(level: str = "INFO", json_lines: bool = False) -> None:
    """
    Route loguru to stdout. ConsoleLogger already renders `event {json}`;
    at DEBUG a timestamp and level column are prepended, and `json_lines`
    switches to loguru's serialized records for log shippers.
    """
    level = level.upper()
    logger.remove()
    logger.add(
        lambda msg: print(msg, end=""),
        level=level,
        format=DEBUG_FORMAT if level == "DEBUG" else CONSOLE_FORMAT,
        serialize=json_lines,
    )
