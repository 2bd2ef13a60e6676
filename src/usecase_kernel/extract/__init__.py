from .markdown import (
    MODEL_PLACEHOLDER,
    USE_CASES_PLACEHOLDER,
    render_model,
    render_template,
    render_use_case,
    write_model,
)

__all__ = [
    "MODEL_PLACEHOLDER",
    "USE_CASES_PLACEHOLDER",
    "render_model",
    "render_template",
    "render_use_case",
    "write_model",
]
