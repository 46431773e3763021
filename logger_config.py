import logging
import logging.handlers
import queue
import os

LOG_DIR = os.getenv('SITEMAP_LOG_DIR', 'logs')
# LOG_LEVEL filters combined.log only; debug.log and the console keep their own levels
LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG').upper()

# Ensure logs directory exists
os.makedirs(LOG_DIR, exist_ok=True)

formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

# Watcher callbacks log from the observer thread, so route file output through a queue
log_queue = queue.Queue()
queue_handler = logging.handlers.QueueHandler(log_queue)

file_handler = logging.handlers.RotatingFileHandler(
    os.path.join(LOG_DIR, 'combined.log'),
    maxBytes=1024 * 1024, backupCount=5, encoding='utf-8'
)
file_handler.setFormatter(formatter)
file_handler.setLevel(LOG_LEVEL)

debug_handler = logging.handlers.RotatingFileHandler(
    os.path.join(LOG_DIR, 'debug.log'),
    maxBytes=1024 * 1024, backupCount=5, encoding='utf-8'
)
debug_handler.setFormatter(formatter)
debug_handler.setLevel(logging.DEBUG)

# Console handler (ONLY WARNING and above)
console_handler = logging.StreamHandler()
console_handler.setFormatter(formatter)
console_handler.setLevel(logging.WARNING)

queue_listener = logging.handlers.QueueListener(
    log_queue, file_handler, debug_handler
)
queue_listener.start()

def get_logger(name: str):
    """Returns a thread-safe logger instance."""
    logger = logging.getLogger(name)
    if not logger.hasHandlers():
        logger.setLevel(logging.DEBUG)
        logger.addHandler(queue_handler)  # Route through queue (to log files)
        logger.addHandler(console_handler)  # Route WARN+ to terminal
    return logger

# watchdog reports every inotify event at DEBUG; keep it to files and WARN+ only
watchdog_logger = logging.getLogger("watchdog")
watchdog_logger.setLevel(logging.WARNING)
watchdog_logger.addHandler(queue_handler)
watchdog_logger.propagate = False
