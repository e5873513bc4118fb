"""Tests for the chat completions client, with the HTTP session stubbed."""

import pytest
from PIL import Image

from shared.generation import GenerationClient, GenerationError


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=""):
        self.status_code = status_code
        self._body = body or {}
        self.text = text

    def json(self):
        return self._body


@pytest.fixture
def calls():
    return []


def _client(monkeypatch, calls, response, api_key="secret"):
    client = GenerationClient(
        api_url="https://example.invalid/v1/chat/completions",
        api_key=api_key,
        model="test-model",
        temperature=0.2,
        timeout=5,
    )

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return response

    monkeypatch.setattr(client._session, "post", fake_post)
    return client


def _reply(content):
    return FakeResponse(body={"choices": [{"message": {"content": content}}]})


def test_missing_key_fails_before_request(monkeypatch, calls):
    client = _client(monkeypatch, calls, _reply("unused"), api_key="")
    assert not client.has_key
    with pytest.raises(GenerationError):
        client.send_chat("hello")
    assert calls == []


def test_send_chat_payload(monkeypatch, calls):
    client = _client(monkeypatch, calls, _reply("ACK"))
    assert client.send_chat("hello") == "ACK"

    call = calls[0]
    assert call["url"] == "https://example.invalid/v1/chat/completions"
    assert call["headers"] == {"Authorization": "Bearer secret"}
    assert call["timeout"] == 5
    assert call["json"] == {
        "messages": [{"role": "user", "content": "hello"}],
        "model": "test-model",
        "stream": False,
        "temperature": 0.2,
    }


def test_temperature_override(monkeypatch, calls):
    client = _client(monkeypatch, calls, _reply("ACK"))
    client.sanity_check()
    assert calls[0]["json"]["temperature"] == 0.0


def test_error_status(monkeypatch, calls):
    client = _client(monkeypatch, calls, FakeResponse(status_code=429, text="rate limited"))
    with pytest.raises(GenerationError) as excinfo:
        client.send_chat("hello")
    assert excinfo.value.status_code == 429
    assert "rate limited" in str(excinfo.value)


def test_empty_choices(monkeypatch, calls):
    client = _client(monkeypatch, calls, FakeResponse(body={"choices": []}))
    with pytest.raises(GenerationError, match="Empty response"):
        client.send_chat("hello")


def test_describe_screen_sends_inline_png(monkeypatch, calls):
    client = _client(monkeypatch, calls, _reply("  A terminal window.  "))
    assert client.describe_screen(Image.new("RGB", (8, 8))) == "A terminal window."

    content = calls[0]["json"]["messages"][0]["content"]
    assert content[0]["type"] == "text"
    assert content[1]["image_url"]["url"].startswith("data:image/png;base64,")
