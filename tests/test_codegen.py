import pytest

from vemtl.codegen import PREAMBLE, CodeGenerator, compile_program, to_literal
from vemtl.spec import Segment, SegmentKind
from vemtl.template import Template
from vemtl.tokenizer import Tokenizer


def generate(template):
    return CodeGenerator("test").generate(Tokenizer().tokenize(template))


def test_blocks_are_indented_by_depth():
    program = generate("<% if ok: %>yes<% else: %>no<% end %>")

    assert [(s.code, s.depth) for s in program.statements] == [
        ('_blocks.append("")', 0),
        ("if ok:", 0),
        ('_blocks.append("yes")', 1),
        ("else:", 0),
        ('_blocks.append("no")', 1),
        ('_blocks.append("")', 0),
    ]


def test_statements_carry_template_lines():
    program = generate("a\n<$ value $>\n<% for x in xs: %>\n<% end %>")

    lines = program.lines()
    expression = next(i for i, line in enumerate(lines, 1) if "_text( value )" in line)
    loop = next(i for i, line in enumerate(lines, 1) if line.startswith("for x in xs:"))

    assert lines[expression - 1].endswith("# TEMPLATE_LINE:2")
    assert program.template_line_for(expression) == 2
    assert program.template_line_for(loop) == 3
    # helper boilerplate and out-of-range lines map to nothing
    assert program.template_line_for(1) == 0
    assert program.template_line_for(len(lines) + 10) == 0


def test_empty_block_gets_pass():
    segments = [
        Segment("if ok:", "<% if ok: %>", SegmentKind.LOGIC, 1),
        Segment("end", "<% end %>", SegmentKind.LOGIC, 1),
    ]

    program = CodeGenerator().generate(segments)

    assert [(s.code, s.depth) for s in program.statements] == [("if ok:", 0), ("pass", 1)]
    compile_program(program)


def test_unclosed_block_is_closed_at_the_end():
    assert Template("<% if True: %>x").compile({}) == "x"


def test_program_source_layout():
    program = generate("text")

    lines = program.source.split("\n")
    assert lines[: len(PREAMBLE)] == PREAMBLE
    assert program.source.endswith('_output = "".join(_blocks)\n')


def test_each_generation_gets_a_new_filename():
    assert generate("a").filename != generate("a").filename


def test_to_literal_escapes_quotes_and_control_characters():
    assert to_literal('say "hi"\n\t') == '"say \\"hi\\"\\n\\t"'


def test_validate_reports_syntax_errors():
    program = generate("line one\n<% if ready %>")

    result = CodeGenerator.validate(program)

    assert not result.valid
    assert result.message.startswith("SyntaxError")
    assert result.template_line == 2
    assert result.code_line > len(PREAMBLE)


def test_validate_matches_execution():
    template = Template("<% } %>")

    assert not template.validate().valid
    with pytest.raises(SyntaxError):
        template.compile({})


def test_validate_accepts_await():
    assert CodeGenerator.validate(generate("<$ await fetch() $>")).valid


def test_blank_text_inside_match_is_dropped():
    program = generate("<% match kind: %>  <% case 1: %>one<% end %><% end %>")

    assert [(s.code, s.depth) for s in program.statements] == [
        ('_blocks.append("")', 0),
        ("match kind:", 0),
        ("case 1:", 1),
        ('_blocks.append("one")', 2),
        ('_blocks.append("")', 0),
    ]
    compile_program(program)


def test_text_reports_the_line_of_the_directive_before_it():
    program = generate("head\n<$ a $>\nmiddle<% x = 1 %>\n\n<$ b $> tail")

    text_lines = [
        s.template_line for s in program.statements if s.code.startswith('_blocks.append("')
    ]
    assert text_lines == [0, 2, 3, 5]


def test_text_directly_inside_match_is_located():
    program = generate("one\n<% match kind: %>oops<% case 1: %>x<% end %><% end %>")

    result = CodeGenerator.validate(program)

    assert not result.valid
    assert result.template_line == 2
