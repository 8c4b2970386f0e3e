"""
sealbox_core.logger
-------------------
One JSON object per line for every ``Sealbox.*`` logger.

Handlers hang off the shared ``Sealbox`` parent; component loggers only
pick a name and inherit. Environment defaults:

- ``SEALBOX_LOG_LEVEL``  level name (default INFO)
- ``SEALBOX_LOG_STREAM`` ``stdout`` or ``stderr`` (default stdout)
- ``SEALBOX_LOG_FILE``   optional path that receives the same records
"""

import logging, json, sys, time, os

ROOT_LOGGER = "Sealbox"
_STREAMS = ("stdout", "stderr")


class JsonFormatter(logging.Formatter):
    converter = time.gmtime  # UTC timestamps

    def format(self, record):
        doc = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            doc["exc"] = self.formatException(record.exc_info)
        return json.dumps(doc)


class _SysStreamHandler(logging.StreamHandler):
    # Resolves sys.stdout / sys.stderr at emit time so redirected streams are honoured
    def __init__(self, which="stdout"):
        logging.Handler.__init__(self)
        self.which = which

    @property
    def stream(self):
        return getattr(sys, self.which)


def configure_logging(level=None, stream=None, to_file=None):
    """(Re)build the handlers of the shared parent logger and return it."""
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel((level or os.getenv("SEALBOX_LOG_LEVEL", "INFO")).upper())

    stream = (stream or os.getenv("SEALBOX_LOG_STREAM", "stdout")).lower()
    if stream not in _STREAMS:
        raise ValueError(f"Unknown log stream: {stream}")
    to_file = to_file or os.getenv("SEALBOX_LOG_FILE")

    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    formatter = JsonFormatter()
    handler = _SysStreamHandler(stream)
    handler.setFormatter(formatter)
    root.addHandler(handler)

    if to_file:
        os.makedirs(os.path.dirname(to_file) or ".", exist_ok=True)
        file_handler = logging.FileHandler(to_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return root


def get_logger(name=ROOT_LOGGER, level=None, to_file=None):
    """Component logger under ``Sealbox``; configures the parent on first use."""
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers or to_file:
        configure_logging(to_file=to_file)
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger
