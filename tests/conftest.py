import logging

import pytest


@pytest.fixture(autouse=True)
def _restore_root_logging():
    # The CLI calls logging.basicConfig(force=True), which binds a root
    # handler to CliRunner's temporary stderr; restore the root logger so
    # later tests do not log into a closed stream.
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
