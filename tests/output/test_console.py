"""Tests for the Rich console helpers."""

import pytest
from rich.console import Console

from kizuna.output.console import create_console, get_output, style_for_status


def test_console_renders_to_buffer() -> None:
    console = create_console(no_color=True)
    console.print("hello")
    assert get_output(console) == "hello\n"


def test_get_output_requires_buffer() -> None:
    with pytest.raises(TypeError):
        get_output(Console())


@pytest.mark.parametrize(
    ("status", "style"),
    [("active", "kz.status.live"), ("cancelled", "kz.status.closed"), ("unknown", "")],
)
def test_style_for_status(status: str, style: str) -> None:
    assert style_for_status(status) == style
