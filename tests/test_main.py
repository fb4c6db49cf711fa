"""Unit tests for main.py -- CLI argument parsing and server launch."""

from unittest.mock import patch

import main


def test_defaults_launch_app_on_8080():
    with patch("main.uvicorn.run") as run:
        main.main([])
    run.assert_called_once_with("api.main:app", host="127.0.0.1", port=8080, reload=False)


def test_host_port_and_reload_flags():
    with patch("main.uvicorn.run") as run:
        main.main(["--host", "0.0.0.0", "--port", "9000", "--reload"])
    run.assert_called_once_with("api.main:app", host="0.0.0.0", port=9000, reload=True)
