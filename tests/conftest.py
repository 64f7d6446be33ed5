import logging
from pathlib import Path
from typing import Dict, Union

import pytest


def make_tree(root: Path, files: Dict[str, Union[str, bytes]]) -> Path:
    """Create *files* (relative path -> contents) under *root*."""
    for rel, contents in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(contents, bytes):
            path.write_bytes(contents)
        else:
            path.write_bytes(contents.encode("utf-8"))
    return root


@pytest.fixture
def tree(tmp_path):
    def _tree(files):
        return make_tree(tmp_path, files)
    return _tree


@pytest.fixture(autouse=True)
def _reset_clipfiles_logger():
    yield
    logger = logging.getLogger("clipfiles")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
