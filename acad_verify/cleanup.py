"""
Background removal of uploads that outlived their request
(for example when the worker died mid-verification).
"""

import time
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def sweep_uploads(folder, max_age, now=None):
    """Delete files in `folder` older than `max_age` seconds; returns how many were removed"""
    folder = Path(folder)
    if not folder.exists():
        return 0

    now = time.time() if now is None else now
    removed = 0
    for path in folder.iterdir():
        try:
            if not path.is_file():
                continue
            if now - path.stat().st_mtime > max_age:
                path.unlink()
                removed += 1
        except OSError as e:
            logger.warning(f"Error cleaning up upload {path}: {e}")

    if removed:
        logger.info(f"Cleaned up {removed} stale uploads")
    return removed


def start_periodic_cleanup(folder, max_age, interval):
    """Run sweep_uploads every `interval` seconds on a daemon thread"""
    import threading

    def cleanup_loop():
        while True:
            time.sleep(interval)
            try:
                sweep_uploads(folder, max_age)
            except Exception as e:
                logger.error(f"Cleanup error: {e}")

    thread = threading.Thread(target=cleanup_loop, name='acad-upload-cleanup', daemon=True)
    thread.start()
    return thread
