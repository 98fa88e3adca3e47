"""Run the external commands that do the real filesystem work."""

import logging
import subprocess

logger = logging.getLogger(__name__)

SPAWN_FAILED = -1


def run_command(argv: list[str]) -> int:
    """Run `argv` as a child process and wait for it.

    Returns:
        The exit status; the negated signal number if the child was
        killed; SPAWN_FAILED if it could not be started.
    """
    logger.debug(f"exec {argv}")
    try:
        result = subprocess.run(argv)
    except OSError as e:
        logger.error(f"{argv[0]}: could not start: {e}")
        return SPAWN_FAILED

    if result.returncode < 0:
        logger.error(f"{argv[0]} killed by signal {-result.returncode}")
    elif result.returncode != 0:
        logger.error(f"{argv[0]} exited with status={result.returncode}")
    return result.returncode
