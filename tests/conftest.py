pytest_plugins = ["gitpeek.testing.conftest"]
