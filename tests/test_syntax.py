from vemtl.syntax import (
    BlockRole,
    classify_logic,
    leading_keyword,
    leading_width,
    line_number_for_index,
    nth_occurrence,
)


def test_classify_opening_fragments():
    assert classify_logic(" if user: ") is BlockRole.OPEN
    assert classify_logic("for item in items:") is BlockRole.OPEN
    assert classify_logic("with open(path) as f:") is BlockRole.OPEN
    assert classify_logic("match value:") is BlockRole.OPEN
    assert classify_logic("case 1:") is BlockRole.OPEN


def test_classify_continuation_and_close():
    assert classify_logic("else:") is BlockRole.CONTINUE
    assert classify_logic(" elif count > 1: ") is BlockRole.CONTINUE
    assert classify_logic("except KeyError:") is BlockRole.CONTINUE
    assert classify_logic(" end ") is BlockRole.CLOSE
    assert classify_logic("}") is BlockRole.CLOSE


def test_classify_statements():
    assert classify_logic("total = 0") is BlockRole.STATEMENT
    # keyword-like prefixes are not keywords
    assert classify_logic("iffy = {'a': 1}") is BlockRole.STATEMENT
    assert classify_logic("format:") is BlockRole.STATEMENT
    # one-line compound statements have no body to open
    assert classify_logic("if user: greet()") is BlockRole.STATEMENT
    assert classify_logic("break") is BlockRole.STATEMENT


def test_line_helpers():
    assert leading_width("    x") == 4
    assert leading_width("") == 0
    assert line_number_for_index("a\nb\nc", 0) == 1
    assert line_number_for_index("a\nb\nc", 2) == 2
    assert line_number_for_index("a\nb\nc", -1) == 0


def test_nth_occurrence():
    assert nth_occurrence("abab", "ab", 1) == 0
    assert nth_occurrence("abab", "ab", 2) == 2
    assert nth_occurrence("abab", "ab", 3) == -1


def test_class_opens_a_block():
    assert classify_logic("class Box:") is BlockRole.OPEN
    assert classify_logic("class Box(Base):") is BlockRole.OPEN


def test_leading_keyword():
    assert leading_keyword(" match value: ") == "match"
    assert leading_keyword("}") == ""
