## STREAMING EVENTS

OPENAI_ROLE_CHUNK = {
    "id": "chatcmpl-8Nq2xYg1",
    "object": "chat.completion.chunk",
    "created": 1700650000,
    "model": "gpt-3.5-turbo-0613",
    "choices": [{"index": 0, "delta": {"role": "assistant", "content": ""}, "finish_reason": None}],
}
OPENAI_CONTENT_CHUNK = {
    "id": "chatcmpl-8Nq2xYg1",
    "object": "chat.completion.chunk",
    "created": 1700650000,
    "model": "gpt-3.5-turbo-0613",
    "choices": [{"index": 0, "delta": {"content": "Hello"}, "finish_reason": None}],
}
OPENAI_FINISH_CHUNK = {
    "id": "chatcmpl-8Nq2xYg1",
    "object": "chat.completion.chunk",
    "created": 1700650000,
    "model": "gpt-3.5-turbo-0613",
    "choices": [{"index": 0, "delta": {}, "finish_reason": "stop"}],
}
OPENAI_USAGE_CHUNK = {
    "id": "chatcmpl-8Nq2xYg1",
    "object": "chat.completion.chunk",
    "created": 1700650000,
    "model": "gpt-3.5-turbo-0613",
    "choices": [],
    "usage": {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15},
}

COHERE_TEXT_CHUNK = {"text": " Hello", "is_finished": False}
COHERE_FINISHED_CHUNK = {
    "is_finished": True,
    "finish_reason": "MAX_TOKENS",
    "amazon-bedrock-invocationMetrics": {
        "inputTokenCount": 8,
        "outputTokenCount": 20,
        "invocationLatency": 1103,
        "firstByteLatency": 287,
    },
}

ANTHROPIC_TEXT_CHUNK = {"completion": " Hello", "stop_reason": None, "stop": None}
ANTHROPIC_FINAL_CHUNK = {
    "completion": "",
    "stop_reason": "stop_sequence",
    "stop": "\n\nHuman:",
    "amazon-bedrock-invocationMetrics": {
        "inputTokenCount": 14,
        "outputTokenCount": 9,
        "invocationLatency": 740,
        "firstByteLatency": 312,
    },
}

## COMPLETE RESPONSES

OPENAI_COMPLETION = {
    "id": "chatcmpl-8Nq3aBc",
    "object": "chat.completion",
    "created": 1700650100,
    "model": "gpt-3.5-turbo-0613",
    "choices": [
        {
            "index": 0,
            "message": {"role": "assistant", "content": "Hello there, how may I assist you today?"},
            "finish_reason": "stop",
        }
    ],
    "usage": {"prompt_tokens": 9, "completion_tokens": 12, "total_tokens": 21},
}

COHERE_COMPLETION = {
    "id": "a8f1e3c2-5b7d-4e90-9c1a-2f6d8b4e7a10",
    "prompt": "Human: Hi\n\nAssistant:",
    "generations": [
        {"id": "g-1", "text": " Hello! How can I help?", "finish_reason": "COMPLETE"},
        {"id": "g-2", "text": " Hi there", "finish_reason": "ERROR_TOXIC"},
    ],
}

ANTHROPIC_COMPLETION = {
    "completion": " Hello! How can I help you today?",
    "stop_reason": "stop_sequence",
    "stop": "\n\nHuman:",
}
