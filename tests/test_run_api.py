"""
Tests for the API server entry point.
"""

from unittest.mock import patch

import run_api
from catalog_api.config import config


class TestRunApi:
    """Test cases for run_api.main."""

    def test_main_configures_logging_then_serves(self):
        with patch("run_api.setup_logging") as setup_logging, \
                patch("run_api.uvicorn.run") as run, \
                patch.object(run_api, "logger") as logger:
            run_api.main()

        setup_logging.assert_called_once_with(
            log_level=config.log_level,
            log_format=config.log_format,
            log_file=config.log_file,
            debug=config.debug,
        )
        logger.info.assert_called_once_with(
            "Starting Book Catalog API server",
            host=config.host,
            port=config.port,
            debug=config.debug,
            database=config.mongodb_database,
        )
        run.assert_called_once_with(
            "catalog_api.main:app",
            host=config.host,
            port=config.port,
            reload=config.debug,
            log_level=config.log_level.lower(),
            access_log=True,
        )

