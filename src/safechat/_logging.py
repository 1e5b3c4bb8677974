"""Package logger factory.

All modules log through children of the ``safechat`` logger. The library
never configures handlers beyond a NullHandler; applications opt in with
``logging.getLogger("safechat").setLevel(logging.DEBUG)``.

Never log keys, API keys or plaintext bodies.
"""

import logging

_ROOT_LOGGER_NAME = "safechat"

logging.getLogger(_ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Return a logger in the ``safechat`` hierarchy."""
    if name != _ROOT_LOGGER_NAME and not name.startswith(_ROOT_LOGGER_NAME + "."):
        name = f"{_ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
