from vemtl.runtime import TemplateParams, remove_last_line_break, to_text


def test_missing_params_read_as_none():
    params = TemplateParams()
    params.flag = True

    assert params.flag is True
    assert params.other is None


def test_to_text():
    assert to_text(None) == ""
    assert to_text(3) == "3"
    assert to_text("x") == "x"


def test_remove_last_line_break_targets_second_to_last_chunk():
    blocks = ["a\n", "b\n  ", ""]

    remove_last_line_break(blocks)

    assert blocks == ["a\n", "b", ""]


def test_remove_last_line_break_removes_a_single_break():
    blocks = ["a\n\n", ""]

    remove_last_line_break(blocks)

    assert blocks == ["a\n", ""]


def test_remove_last_line_break_needs_two_chunks():
    blocks = ["a\n"]

    remove_last_line_break(blocks)

    assert blocks == ["a\n"]
