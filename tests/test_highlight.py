from __future__ import annotations

import pytest

from covterm.errors import ConfigurationError
from covterm.highlight import PlainHighlighter, PygmentsHighlighter

SOURCE = "\n\nclass User\n  def name\n    @name\n  end\nend\n"


def test_pygments_keeps_one_entry_per_line() -> None:
    lines = PygmentsHighlighter()(SOURCE, filename="app/models/user.rb")
    assert len(lines) == 7
    assert lines[0] == ""
    assert "\x1b[" in lines[2]
    assert "User" in lines[2]


def test_unknown_extension_falls_back_to_text() -> None:
    lines = PygmentsHighlighter()("one\ntwo\n", filename="notes.unknown-ext")
    assert len(lines) == 2
    assert "one" in lines[0]


def test_unknown_style_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="unknown highlight style"):
        PygmentsHighlighter(style="no-such-style")("x\n", filename="a.rb")


def test_plain_highlighter() -> None:
    assert PlainHighlighter()(SOURCE) == ["", "", "class User", "  def name", "    @name", "  end", "end"]


def test_plain_highlighter_keeps_form_feeds() -> None:
    assert PlainHighlighter()("a\x0cb\r\nc\n") == ["a\x0cb", "c"]
