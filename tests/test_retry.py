import httpx
import pytest

from fansite.core.retry import RetryConfig, calculate_delay, retry_async
from fansite.services.email_service import EmailService

FAST = RetryConfig(max_attempts=3, base_delay=0, max_delay=0, jitter=0)


def _client(responses: list[int]) -> tuple[httpx.AsyncClient, list]:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(responses[min(len(calls), len(responses)) - 1])

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), calls


async def _post(client: httpx.AsyncClient) -> httpx.Response:
    response = await client.post("https://mail.example.test/emails", json={})
    response.raise_for_status()
    return response


async def test_retries_server_errors_until_success():
    client, calls = _client([503, 502, 200])
    async with client:
        response = await retry_async(_post, client, config=FAST)
    assert response.status_code == 200
    assert len(calls) == 3


async def test_client_errors_are_not_retried():
    client, calls = _client([422])
    async with client:
        with pytest.raises(httpx.HTTPStatusError):
            await retry_async(_post, client, config=FAST)
    assert len(calls) == 1


async def test_gives_up_after_max_attempts():
    client, calls = _client([500])
    async with client:
        with pytest.raises(httpx.HTTPStatusError):
            await retry_async(_post, client, config=FAST)
    assert len(calls) == FAST.max_attempts


def test_delay_is_capped():
    config = RetryConfig(base_delay=1.0, max_delay=5.0, jitter=0)
    assert calculate_delay(0, config) == 1.0
    assert calculate_delay(2, config) == 4.0
    assert calculate_delay(10, config) == 5.0


async def test_email_is_skipped_without_api_key():
    client, calls = _client([200])
    async with client:
        sent = await EmailService(client).send_verification("kaji@example.com", "token")
    assert sent is False
    assert calls == []
