import os
import sys

from loguru import logger

from imgevolve.config import load_config, setup_logging


def test_setup_logging_writes_file(tmp_path):
    config = load_config(
        overrides=[f"logging.log_dir={tmp_path}", "logging.level=DEBUG", "logging.enable_colors=false"]
    )
    try:
        log_file = setup_logging(config)
        logger.debug("[test] hello")
        logger.complete()
        assert os.path.dirname(log_file) == str(tmp_path)
        with open(log_file, encoding="utf-8") as f:
            assert "[test] hello" in f.read()
    finally:
        logger.remove()
        logger.add(sys.stderr)
