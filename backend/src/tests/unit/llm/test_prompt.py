import pydantic
import pytest

from modelbridge.llm.prompt import GenerationOptions, Message, Prompt, messages_to_text_prompt


def test_from_text():
    prompt = Prompt.from_text("Hello")
    assert prompt.messages == [Message(role="user", content="Hello")]
    assert prompt.options.as_params() == {}


def test_from_dicts_defaults_missing_fields():
    prompt = Prompt.from_dicts([{"role": "system", "content": "Be brief"}, {"content": None}])
    assert prompt.messages == [Message("system", "Be brief"), Message("user", "")]


def test_options_exclude_unset_and_extra():
    options = GenerationOptions(temperature=0.1, stop=["\n"], extra={"truncate": "END"})
    assert options.as_params() == {"temperature": 0.1, "stop": ["\n"]}


def test_options_reject_unknown_fields():
    with pytest.raises(pydantic.ValidationError):
        GenerationOptions(temprature=0.1)


def test_messages_to_text_prompt():
    messages = [
        Message("system", "You are terse."),
        Message("user", "Hi"),
        Message("assistant", "Hello."),
        Message("user", "Bye"),
    ]

    assert messages_to_text_prompt(messages) == (
        "You are terse.\n\nHuman: Hi\n\nAssistant: Hello.\n\nHuman: Bye\n\nAssistant:"
    )


def test_messages_to_text_prompt_unknown_role_is_labelled():
    assert messages_to_text_prompt([Message("tool", "42")]) == "Tool: 42\n\nAssistant:"
