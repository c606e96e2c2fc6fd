import os

import psutil

MEGABYTE = 1024 * 1024


def log_memory_usage(logger, step: str):
    """Log memory usage after one pass or command step."""
    mem_info = psutil.Process(os.getpid()).memory_info()
    logger.debug(
        f"Memory usage after {step}: RSS={mem_info.rss / MEGABYTE:.1f}MB, "
        f"VMS={mem_info.vms / MEGABYTE:.1f}MB"
    )
