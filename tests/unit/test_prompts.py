import pytest

from chatrelay.core.exceptions import ConfigurationError
from chatrelay.services.prompts import render_prompt
from chatrelay.services.prompts import system_prompt


def test_system_prompt_renders():
    prompt = system_prompt()
    assert prompt.startswith("You are an elite senior software engineer")
    assert prompt == prompt.strip()


def test_missing_template_raises_configuration_error():
    with pytest.raises(ConfigurationError) as exc_info:
        render_prompt("does_not_exist.jinja2")
    assert "not found" in str(exc_info.value)


def test_missing_context_raises_configuration_error():
    with pytest.raises(ConfigurationError):
        render_prompt("upload_full.jinja2", file_name="a.py")
