import logging
import pathlib
from functools import lru_cache
from typing import Any

import jinja2

from chatrelay.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PROMPT_DIR = pathlib.Path(__file__).parent / "prompt_templates"

# Plain text prompts: no HTML autoescaping, and undefined variables are errors.
env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(PROMPT_DIR),
    autoescape=False,
    undefined=jinja2.StrictUndefined,
)


def render_prompt(template_name: str, **context: Any) -> str:
    """Render a prompt template and strip surrounding whitespace."""
    try:
        template = env.get_template(template_name)
        return template.render(**context).strip()
    except jinja2.TemplateNotFound:
        logger.error("Template not found: %s (looked in %s)", template_name, PROMPT_DIR)
        raise ConfigurationError(f"Internal configuration error: Template '{template_name}' not found.") from None
    except jinja2.UndefinedError as e:
        logger.error("Template %s rendered with missing context: %s", template_name, str(e))
        raise ConfigurationError(f"Template '{template_name}' is missing context: {e}") from e


@lru_cache(maxsize=1)
def system_prompt() -> str:
    """The fixed system/style instruction sent ahead of every session history."""
    return render_prompt("system_prompt.jinja2")
