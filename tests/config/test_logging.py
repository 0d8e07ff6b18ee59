from __future__ import annotations

import logging

from adrecon.config import configure_logging


def test_configure_logging_sets_root_level() -> None:
    root = logging.getLogger()
    previous_level = root.level
    previous_handlers = list(root.handlers)
    try:
        configure_logging(level=logging.DEBUG, force=True)

        assert root.level == logging.DEBUG
        assert root.handlers
        formatter = root.handlers[0].formatter
        assert formatter is not None
        assert "[%(name)s]" in (formatter._fmt or "")
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = previous_handlers
        root.setLevel(previous_level)
