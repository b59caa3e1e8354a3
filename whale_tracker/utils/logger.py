import os
import sys

from loguru import logger


def setup_logger(
    job: str = "tracker",
    *,
    json_logs: bool = False,
    level: str = "INFO",
    log_dir: str = "logs",
) -> None:
    """Configure loguru for one tracker job (ingest, weekly, migrate, ...).

    Console level comes from LOG_LEVEL env (default: ``level``). Every record
    carries ``extra["job"]`` so interleaved cron output stays attributable,
    and each job writes its own daily DEBUG file under ``log_dir``.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    logger.remove()
    logger.configure(extra={"job": job})

    if json_logs:
        logger.add(sys.stdout, serialize=True, level=console_level)
    else:
        logger.add(
            sys.stdout,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<magenta>{extra[job]}</magenta> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
                "<level>{message}</level>"
            ),
            level=console_level,
            colorize=True,
        )

    logger.add(
        os.path.join(log_dir, f"{job}_{{time:YYYY-MM-DD}}.log"),
        rotation="00:00",
        retention="30 days",
        compression="gz",
        level="DEBUG",
        serialize=json_logs,
    )
