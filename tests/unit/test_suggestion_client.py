import json

import httpx
import pytest

from app.utils.config import Settings
from app.utils.suggestion_client import (
    GeminiSuggestionClient,
    OllamaSuggestionClient,
    OpenRouterSuggestionClient,
    SuggestionServiceError,
    get_suggestion_client,
)


@pytest.fixture
def mock_transport(monkeypatch):
    """Route every httpx.Client through a handler set by the test."""
    requests = []
    state = {"handler": None}
    real_client = httpx.Client

    def handler(request):
        requests.append(request)
        return state["handler"](request)

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(httpx, "Client", client_factory)

    def set_handler(fn):
        state["handler"] = fn
        return requests

    return set_handler


def test_ollama_generate(mock_transport):
    requests = mock_transport(lambda r: httpx.Response(200, json={"response": " Finance \n"}))
    client = OllamaSuggestionClient("http://ollama:11434/")

    assert client.suggest("llama3.2", "prompt text") == " Finance \n"

    request = requests[0]
    assert str(request.url) == "http://ollama:11434/api/generate"
    assert json.loads(request.content) == {"model": "llama3.2", "prompt": "prompt text", "stream": False}


def test_ollama_http_error(mock_transport):
    mock_transport(lambda r: httpx.Response(500, text="oops"))

    with pytest.raises(SuggestionServiceError):
        OllamaSuggestionClient("http://ollama:11434").suggest("m", "p")


def test_ollama_missing_text(mock_transport):
    mock_transport(lambda r: httpx.Response(200, json={"done": True}))

    with pytest.raises(SuggestionServiceError):
        OllamaSuggestionClient("http://ollama:11434").suggest("m", "p")


def test_transport_error(mock_transport):
    def refuse(request):
        raise httpx.ConnectError("refused", request=request)

    mock_transport(refuse)

    with pytest.raises(SuggestionServiceError):
        OllamaSuggestionClient("http://ollama:11434").suggest("m", "p")


def test_invalid_json(mock_transport):
    mock_transport(lambda r: httpx.Response(200, text="not json"))

    with pytest.raises(SuggestionServiceError):
        OllamaSuggestionClient("http://ollama:11434").suggest("m", "p")


def test_openrouter_chat(mock_transport):
    requests = mock_transport(
        lambda r: httpx.Response(200, json={"choices": [{"message": {"content": "Work/Reports"}}]})
    )
    client = OpenRouterSuggestionClient("key-123", "https://openrouter.ai/api/v1")

    assert client.suggest("some/model", "p") == "Work/Reports"
    request = requests[0]
    assert request.headers["Authorization"] == "Bearer key-123"
    assert str(request.url) == "https://openrouter.ai/api/v1/chat/completions"


def test_openrouter_malformed(mock_transport):
    mock_transport(lambda r: httpx.Response(200, json={"choices": []}))

    with pytest.raises(SuggestionServiceError):
        OpenRouterSuggestionClient("k", "https://openrouter.ai/api/v1").suggest("m", "p")


def test_gemini_generate_content(mock_transport):
    payload = {"candidates": [{"content": {"parts": [{"text": "Pictures/"}, {"text": "2024"}]}}]}
    requests = mock_transport(lambda r: httpx.Response(200, json=payload))

    assert GeminiSuggestionClient("g-key").suggest("gemini-2.0-flash", "p") == "Pictures/2024"
    request = requests[0]
    assert request.url.path.endswith("/models/gemini-2.0-flash:generateContent")
    assert request.headers["x-goog-api-key"] == "g-key"


def test_factory_selects_provider():
    assert isinstance(get_suggestion_client(Settings(suggestion_provider="ollama")), OllamaSuggestionClient)

    settings = Settings(suggestion_provider="openrouter", openrouter_api_key=None)
    with pytest.raises(SuggestionServiceError):
        get_suggestion_client(settings)
    assert isinstance(get_suggestion_client(settings, api_key="k"), OpenRouterSuggestionClient)

    settings = Settings(suggestion_provider="gemini", gemini_api_key="env-key")
    client = get_suggestion_client(settings)
    assert isinstance(client, GeminiSuggestionClient)
    assert client.api_key == "env-key"
