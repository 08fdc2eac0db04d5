import pytest

from modelbridge.core.exceptions import ValidationError
from modelbridge.llm.param_mapping import build_backend_params
from modelbridge.services.providers.parameter_definitions import (
    ArrayParameter,
    BooleanParameter,
    EnumParameter,
    IntegerParameter,
    NumberParameter,
    ObjectParameter,
    Option,
    StringParameter,
    serialize_parameter_mapping,
)

MAPPING = serialize_parameter_mapping(
    {
        "temperature": NumberParameter(min=0, max=2),
        "top_p": NumberParameter(field="p", min=0, max=1),
        "max_tokens": IntegerParameter(field="max_tokens_to_sample", min=1),
        "stop": ArrayParameter(field="stop_sequences", items=StringParameter(), max_items=2),
        "echo": BooleanParameter(),
    }
)


def test_serialized_mapping_shape():
    assert MAPPING["top_p"] == {"type": "number", "field": "p", "min": 0, "max": 1}
    assert MAPPING["stop"]["items"] == {"type": "string"}
    assert MAPPING["echo"] == {"type": "boolean"}


def test_per_call_values_override_defaults_and_are_renamed():
    params = build_backend_params(
        MAPPING,
        defaults={"temperature": 0.7, "max_tokens": 256},
        request_params={"temperature": 0.2, "top_p": 0.9},
    )

    assert params == {"temperature": 0.2, "max_tokens_to_sample": 256, "p": 0.9}


def test_none_values_are_omitted():
    params = build_backend_params(MAPPING, defaults={"temperature": None, "max_tokens": None}, request_params={})
    assert params == {}


def test_undeclared_options_are_dropped():
    params = build_backend_params(MAPPING, defaults={}, request_params={"top_k": 40, "temperature": 1})
    assert params == {"temperature": 1}


def test_extra_parameters_pass_through():
    params = build_backend_params(MAPPING, defaults={}, request_params={}, extra={"truncate": "END", "skip": None})
    assert params == {"truncate": "END"}


@pytest.mark.parametrize(
    "request_params, message",
    [
        ({"temperature": 3}, "must be <= 2"),
        ({"temperature": -0.1}, "must be >= 0"),
        ({"temperature": "hot"}, "expects type number"),
        ({"temperature": True}, "expects type number"),
        ({"max_tokens": 1.5}, "expects type integer"),
        ({"stop": ["a", "b", "c"]}, "at most 2 items"),
        ({"echo": "yes"}, "expects type boolean"),
    ],
)
def test_invalid_values_are_rejected(request_params, message):
    with pytest.raises(ValidationError, match=message) as exc_info:
        build_backend_params(MAPPING, defaults={}, request_params=request_params)
    assert exc_info.value.status_code == 400


def test_unsupported_declared_type():
    with pytest.raises(ValidationError, match="Unsupported type"):
        build_backend_params({"mode": {"type": "tuple"}}, defaults={}, request_params={"mode": (1, 2)})


TYPED_EXTRAS = serialize_parameter_mapping(
    {
        "truncate": EnumParameter(options=[Option("NONE"), Option("START"), Option("END")]),
        "logit_bias": ObjectParameter(
            field="bias",
            properties={"token": StringParameter(), "bias": NumberParameter(min=-10, max=10)},
            required=["token", "bias"],
        ),
    }
)


def test_enum_and_object_serialization():
    assert TYPED_EXTRAS["truncate"]["options"] == [{"value": "NONE"}, {"value": "START"}, {"value": "END"}]
    assert TYPED_EXTRAS["logit_bias"]["required"] == ["token", "bias"]
    assert TYPED_EXTRAS["logit_bias"]["properties"]["bias"] == {"type": "number", "min": -10, "max": 10}


def test_declared_extra_parameters_are_validated_and_renamed():
    params = build_backend_params(
        TYPED_EXTRAS,
        defaults={},
        request_params={},
        extra={"truncate": "START", "logit_bias": {"token": "7", "bias": 2.5}, "user": "u-1"},
    )

    assert params == {"truncate": "START", "bias": {"token": "7", "bias": 2.5}, "user": "u-1"}


@pytest.mark.parametrize(
    "extra, message",
    [
        ({"truncate": "MIDDLE"}, "Invalid enum value"),
        ({"logit_bias": {"bias": 1}}, "missing required fields: token"),
        ({"logit_bias": {"token": 7, "bias": 1}}, "expects type string"),
        ({"logit_bias": {"token": "7", "bias": -11}}, "must be >= -10"),
    ],
)
def test_declared_extra_parameters_reject_invalid_values(extra, message):
    with pytest.raises(ValidationError, match=message):
        build_backend_params(TYPED_EXTRAS, defaults={}, request_params={}, extra=extra)


def test_enum_without_options_is_rejected():
    with pytest.raises(ValidationError, match="missing 'options'"):
        build_backend_params({"mode": {"type": "enum"}}, defaults={}, request_params={"mode": "a"})
