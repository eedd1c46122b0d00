import asyncio

import pytest
from pydantic import ValidationError

from vemtl import Template, TemplateErrorLogger
from vemtl.errors import ErrorPositionMapper

COMPLEX_TEMPLATE = """
    Hi, I'm <$ name $>.

    I created these projects:

    <# It is a comment #>
    <% for project in projects: %>
        - <$ project $>
    <% end %>

    Try to throw the error here:
    <% if name: %><$ user.name $><% end %>

    Showing the name again: <$ name $>

    """


def test_error_maps_to_template_line():
    template = Template("\n    Hi, I'm <$ user.name $>\n    Other Line\n    ")

    with pytest.raises(NameError) as exc_info:
        template.compile_with_error_treatment({})

    record = template.get_latest_error()
    assert str(exc_info.value) == "name 'user' is not defined"
    assert record.template_line == 2
    assert record.error == "NameError: name 'user' is not defined"
    assert "user.name" in template.get_program().lines()[record.code_line - 1]


def test_error_line_in_larger_template():
    template = Template(COMPLEX_TEMPLATE)

    with pytest.raises(NameError):
        template.compile_with_error_treatment({"name": "Tiago", "projects": ["PWC"]})

    assert template.get_latest_error().template_line == 12


def test_runtime_error_raised_by_data():
    def explode():
        raise ValueError("boom")

    template = Template("one\ntwo <$ explode() $>")

    with pytest.raises(ValueError, match="boom"):
        template.compile_with_error_treatment({"explode": explode})

    record = template.get_latest_error()
    assert record.template_line == 2
    assert record.error == "ValueError: boom"


def test_syntax_error_maps_to_template_line():
    template = Template("a\nb\n<% if ready %>")

    with pytest.raises(SyntaxError):
        template.compile_with_error_treatment({})

    assert template.get_latest_error().template_line == 3


def test_plain_compile_records_nothing():
    logger = TemplateErrorLogger()
    template = Template("<$ missing $>", error_logger=logger)

    with pytest.raises(NameError):
        template.compile({})

    assert template.get_latest_error() is None
    assert logger.get() == []


def test_records_go_to_the_logger():
    logger = TemplateErrorLogger()
    template = Template("<$ missing $>", {"template_name": "page"}, logger)

    with pytest.raises(NameError):
        template.compile_with_error_treatment({})

    [record] = logger.get()
    assert record is logger.get_latest()
    assert record.template_name == "page"
    assert record.is_child_execution is False
    assert record.id


def test_nested_child_error_is_logged_first():
    logger = TemplateErrorLogger()

    async def render_child():
        child = Template(
            "\nChild: <$ missing.value $>",
            {"template_name": "child", "is_child_execution": True},
            logger,
        )
        return await child.compile_async_with_error_treatment({})

    parent = Template("Parent\n<$ await render_child() $>", {"template_name": "parent"}, logger)

    with pytest.raises(NameError) as exc_info:
        asyncio.run(parent.compile_async_with_error_treatment({"render_child": render_child}))

    child_record, parent_record = logger.get()
    assert str(exc_info.value) == "name 'missing' is not defined"

    assert child_record.template_name == "child"
    assert child_record.is_child_execution is True
    assert child_record.template_line == 2

    assert parent_record.template_name == "parent"
    assert parent_record.is_child_execution is False
    assert parent_record.template_line == 2

    assert child_record.error == parent_record.error


def test_on_log_callback_and_clear():
    logger = TemplateErrorLogger()
    seen = []
    logger.on_log(seen.append)
    template = Template("<$ missing $>", error_logger=logger)

    with pytest.raises(NameError):
        template.compile_with_error_treatment({})

    assert seen == logger.get()

    logger.clear()
    assert logger.get() == []
    assert logger.get_latest() is None


def test_logger_identifiers_are_unique():
    assert TemplateErrorLogger().get_identifier() != TemplateErrorLogger().get_identifier()


def test_records_are_immutable():
    template = Template("<$ missing $>")
    with pytest.raises(NameError):
        template.compile_with_error_treatment({})

    with pytest.raises(ValidationError):
        template.get_latest_error().template_line = 99


def test_error_outside_the_program_maps_to_zero():
    template = Template("text")
    mapper = ErrorPositionMapper("text")

    record = mapper.record(RuntimeError("elsewhere"), template.get_program())

    assert record.code_line == 0
    assert record.template_line == 0
