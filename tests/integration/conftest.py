import os

import pytest

ENV_SSE_URL = "NETSERVICE_SSE_URL"


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    sse_url = os.getenv(ENV_SSE_URL)
    for item in items:
        if "integration" in item.keywords and not sse_url:
            item.add_marker(pytest.mark.skip(reason="NETSERVICE_SSE_URL missing from environment/.env"))
