from vemtl.indentation import IndentationNormalizer
from vemtl.syntax import BlockRole
from vemtl.template import Template

NESTED_TEXT = [
    "<* indent-back *>",
    "<% if True: %>",
    "    <% if True: %>",
    "        <% if True: %>",
    "        <% text = 'Text here' %>",
    "        <$ text $>",
    "        <% end %>",
    "    <% end %>",
    "<% end %>",
    "<* end:indent-back *>",
]

HTML = [
    "<* indent-back *>",
    "<html>",
    "    <body>",
    "        <% if True: %>",
    "            <% if True: %>",
    "                Teste",
    "                    Teste",
    "            <% end %>",
    "        <% end %>",
    "    </body>",
    "</html>",
    "<* end:indent-back *>",
]


def render(lines):
    return Template("\n".join(lines)).compile({})


def test_text_follows_the_outermost_block():
    assert render(NESTED_TEXT) == "\nText here"


def test_without_region_indentation_is_kept():
    assert render(NESTED_TEXT[1:-1]) == "\n        Text here"


def test_nested_markup_is_pulled_back_one_level():
    lines = render(HTML).split("\n")

    assert lines == [
        "",
        "<html>",
        "    <body>",
        "            Teste",
        "                Teste",
        "    </body>",
        "</html>",
    ]


def test_markup_keeps_columns_outside_a_region():
    lines = render(HTML[1:-1]).split("\n")

    assert lines[2] == "                Teste"
    assert lines[3] == "                    Teste"


def test_mode_tags_never_reach_the_output():
    output = render(["<* indent-back *>", "a", "<* end:indent-back *>", "b"])

    assert "<*" not in output
    assert output == "\na\nb"


def test_frames_track_open_blocks():
    normalizer = IndentationNormalizer()
    normalizer.check_code_modes("<* indent-back *>")

    normalizer.observe_logic(BlockRole.OPEN, "    <% if a: %>")
    normalizer.observe_logic(BlockRole.OPEN, "        <% for x in y: %>")

    assert [f.step_number for f in normalizer.frames] == [1, 2]
    assert [f.baseline_spaces for f in normalizer.frames] == [4, 8]
    assert normalizer.indent_back_spaces == 4
    assert normalizer.normalize_text("\n            body") == "\n        body"

    normalizer.observe_logic(BlockRole.CLOSE, "        <% end %>")
    normalizer.observe_logic(BlockRole.CLOSE, "    <% end %>")

    assert normalizer.frames == []
    assert not normalizer.is_inside_indent_container
    assert normalizer.normalize_text("\n            body") == "\n            body"


def test_frames_ignored_outside_region():
    normalizer = IndentationNormalizer()

    normalizer.observe_logic(BlockRole.OPEN, "    <% if a: %>")

    assert normalizer.frames == []


def test_close_without_frames_is_harmless():
    normalizer = IndentationNormalizer()
    normalizer.check_code_modes("<* indent-back *>")

    normalizer.observe_logic(BlockRole.CLOSE, "<% end %>")

    assert normalizer.frames == []
    assert normalizer.indent_back_spaces == 0
