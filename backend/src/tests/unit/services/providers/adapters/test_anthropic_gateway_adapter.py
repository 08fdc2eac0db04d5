import json

import pytest

from modelbridge.llm.prompt import GenerationOptions, Prompt
from modelbridge.llm.types import FinishReason, StreamState
from modelbridge.services.providers.adapters.anthropic_gateway_adapter import (
    AnthropicGatewayAdapter,
    AnthropicResponse,
    AnthropicStreamChunk,
)
from shared import ANTHROPIC_COMPLETION, ANTHROPIC_FINAL_CHUNK, ANTHROPIC_TEXT_CHUNK


@pytest.fixture(scope="function")
def anthropic_adapter(test_settings):
    return AnthropicGatewayAdapter(test_settings)


@pytest.fixture(scope="function")
def stream_state():
    return StreamState(stream_id="req-7")


def test_build_request(anthropic_adapter):
    prompt = Prompt.from_text("Hi", GenerationOptions(top_k=250, stop=["\n\nHuman:"]))

    request = anthropic_adapter.build_request(prompt, model="anthropic.claude-v2", stream=True)
    body = json.loads(request.body)

    assert request.model == "anthropic.claude-v2"
    assert body == {
        "prompt": "\n\nHuman: Hi\n\nAssistant:",
        "anthropic_version": "bedrock-2023-05-31",
        "temperature": 0.5,
        "top_k": 250,
        "max_tokens_to_sample": 300,
        "stop_sequences": ["\n\nHuman:"],
    }


def test_system_prompt_leads_without_blank_line(anthropic_adapter):
    prompt = Prompt.from_dicts([{"role": "system", "content": "Be brief"}, {"role": "user", "content": "Hi"}])

    body = json.loads(anthropic_adapter.build_request(prompt).body)

    assert body["prompt"] == "Be brief\n\nHuman: Hi\n\nAssistant:"


def test_explicit_max_tokens_wins(anthropic_adapter):
    body = json.loads(anthropic_adapter.build_request(Prompt.from_text("Hi", GenerationOptions(max_tokens=50))).body)
    assert body["max_tokens_to_sample"] == 50


def test_stream_chunks(anthropic_adapter, stream_state):
    text = anthropic_adapter.chunk_deltas(AnthropicStreamChunk.model_validate(ANTHROPIC_TEXT_CHUNK), stream_state)
    final = anthropic_adapter.chunk_deltas(AnthropicStreamChunk.model_validate(ANTHROPIC_FINAL_CHUNK), stream_state)

    assert text[0].text == " Hello"
    assert text[0].role == "assistant"
    assert text[0].finish_reason is None
    assert final[0].finish_reason is FinishReason.STOP
    assert final[0].usage.prompt_tokens == 14
    assert final[0].usage.completion_tokens == 9
    assert final[0].usage.first_byte_latency_ms == 312


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("stop_sequence", FinishReason.STOP),
        ("end_turn", FinishReason.STOP),
        ("max_tokens", FinishReason.LENGTH),
    ],
)
def test_normalize_finish_reason(anthropic_adapter, raw, expected):
    assert anthropic_adapter.normalize_finish_reason(raw) is expected


def test_normalize_completion(anthropic_adapter):
    result = anthropic_adapter.normalize_completion(AnthropicResponse.model_validate(ANTHROPIC_COMPLETION))

    assert len(result) == 1
    assert result[0].text == " Hello! How can I help you today?"
    assert result[0].metadata.finish_reason is FinishReason.STOP
    assert result[0].metadata.raw_finish_reason == "stop_sequence"
