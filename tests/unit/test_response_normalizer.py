from types import SimpleNamespace

import pytest

from chatrelay.services.response_normalizer import ResponseShape
from chatrelay.services.response_normalizer import classify
from chatrelay.services.response_normalizer import extract_text


def test_output_items_concatenate_in_order(envelopes):
    raw = envelopes.output("a", "b", "c")
    assert classify(raw) is ResponseShape.OUTPUT_ITEMS
    assert extract_text(raw) == "abc"


def test_output_items_keep_duplicates(envelopes):
    assert extract_text(envelopes.output("x", "x")) == "xx"


def test_output_items_read_from_sdk_like_objects():
    raw = SimpleNamespace(
        output=[
            SimpleNamespace(type="reasoning", content=[SimpleNamespace(type="reasoning_text", text="thinking...")]),
            SimpleNamespace(
                type="message",
                content=[
                    SimpleNamespace(type="output_text", text="Hello "),
                    SimpleNamespace(type="output_text", text="world"),
                ],
            ),
        ],
        output_text="Hello world",
    )
    assert extract_text(raw) == "Hello world"


def test_output_items_tolerate_varying_part_keys():
    raw = {
        "output": [
            {"content": [{"output_text": "1"}, {"content": "2"}, {"text": {"value": "3"}}]},
            {"content": "4"},
            {"content": [{"refusal": "no"}, {"text": None}]},
            {"type": "message"},
        ]
    }
    assert extract_text(raw) == "1234"


def test_output_text_shape():
    raw = {"output_text": "convenience"}
    assert classify(raw) is ResponseShape.OUTPUT_TEXT
    assert extract_text(raw) == "convenience"


def test_chat_choices_shape(envelopes):
    raw = envelopes.chat("from chat")
    assert classify(raw) is ResponseShape.CHAT_CHOICES
    assert extract_text(raw) == "from chat"


def test_chat_choices_with_null_content(envelopes):
    assert extract_text(envelopes.chat(None)) == ""
    assert extract_text({"choices": []}) == ""
    assert extract_text({"choices": [{"message": None}]}) == ""


@pytest.mark.parametrize(
    "raw",
    [None, {}, {"data": "x"}, "plain string", 42, {"output": "not a list"}, SimpleNamespace(foo="bar")],
)
def test_unrecognized_shapes_return_empty(raw):
    assert extract_text(raw) == ""
