from __future__ import annotations

import pytest

from newsletter.testing.harness import TestApp

pytestmark = pytest.mark.integration


async def test_health_check_works(test_app: TestApp) -> None:
    response = await test_app.get_health()

    assert response.status_code == 200
    assert response.headers.get("content-length") == "0"
    assert response.content == b""


async def test_server_listens_on_an_os_chosen_port(test_app: TestApp) -> None:
    assert test_app.port != 0
    assert test_app.address.endswith(f":{test_app.port}")
