from script_bundler import SourceFile
from script_bundler.concat import concatenate


def shout(text: str) -> str:
    return text.upper()


def test_files_are_joined_in_order_with_a_line_break_each(context):
    files = [SourceFile("~/js/a.js", "var a=1;"), SourceFile("~/js/b.js", "var b=2;")]
    result = concatenate(context, files)
    assert result.text == "var a=1;\nvar b=2;\n"
    assert result.text.count("\n") >= len(files)


def test_untransformed_files_are_not_published(context):
    concatenate(context, [SourceFile("~/js/a.js", "var a=1;")])
    assert len(context.registry) == 0


def test_transformed_files_are_published_next_to_the_original(context):
    files = [
        SourceFile("~/js/a.js", "var a=1;"),
        SourceFile("~/js/b.js", "var b=2;", [shout]),
    ]
    result = concatenate(context, files)

    assert result.text == "var a=1;\nVAR B=2;\n"
    assert context.content_for("~/js/b.transformed.js") == "VAR B=2;"
    assert context.content_for("~/js/a.transformed.js") is None
    assert len(context.registry) == 1


def test_transforms_are_applied_in_order(context):
    source = SourceFile("~/js/c.js", "c", [lambda text: text + "1", lambda text: text + "2"])
    assert concatenate(context, [source]).text == "c12\n"
    assert context.content_for("~/js/c.transformed.js") == "c12"


def test_spans_attribute_buffer_lines_to_files(context):
    files = [
        SourceFile("~/js/a.js", "var a=1;\nvar a2=1;"),
        SourceFile("~/js/b.js", "var b=2;\n"),
        SourceFile("~/js/c.js", "var c=3;\r"),
        SourceFile("~/js/d.js", "var d=4;"),
    ]
    origins = concatenate(context, files).origins

    assert [(span.first_line, span.line_count) for span in origins.spans] == [(0, 2), (2, 2), (4, 1), (5, 1)]
    assert origins.spans[0].source == "/js/a.js"
    span, line = origins.locate(1)
    assert (span.virtual_path, line) == ("~/js/a.js", 1)
    span, line = origins.locate(5)
    assert (span.virtual_path, line) == ("~/js/d.js", 0)
    assert origins.locate(6) is None


def test_empty_file_list_gives_empty_buffer(context):
    result = concatenate(context, [])
    assert result.text == ""
    assert result.origins.spans == []


def test_empty_files_still_take_one_line(context):
    files = [SourceFile("~/js/empty.js", ""), SourceFile("~/js/a.js", "var a=1;")]
    origins = concatenate(context, files).origins
    assert [(span.first_line, span.line_count) for span in origins.spans] == [(0, 1), (1, 1)]
