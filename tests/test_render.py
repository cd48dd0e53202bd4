"""
Tests for rendering compiled programs.

Covers interpolation and escaping, sections over every kind of value,
inverted sections, lambdas, partial indentation and the nesting guard.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from mustc import Context, Engine, EngineConfig, RecursionLimitError, TemplateNotFoundError

from tests.infrastructure import render


class TestInterpolation:

    def test_plain_text_unchanged(self, engine):
        text = "Hello,\n  world!\n\n<b>&amp;</b> \"quoted\"\n"
        assert render(engine, text) == text

    def test_escaped_variable(self, engine):
        data = {"v": "<a href=\"x\">Tom & 'Jerry'</a>"}
        assert render(engine, "{{v}}", data) == (
            "&lt;a href=&quot;x&quot;&gt;Tom &amp; &#039;Jerry&#039;&lt;/a&gt;"
        )

    def test_unescaped_variable(self, engine):
        data = {"v": "<b>&\"'</b>"}
        assert render(engine, "{{{v}}}", data) == "<b>&\"'</b>"
        assert render(engine, "{{&v}}", data) == "<b>&\"'</b>"

    def test_missing_and_none_render_empty(self, engine):
        assert render(engine, "[{{missing}}][{{none}}]", {"none": None}) == "[][]"

    def test_non_string_values(self, engine):
        assert render(engine, "{{n}} {{f}}", {"n": 42, "f": 1.5}) == "42 1.5"

    def test_dotted_names(self, engine):
        data = {"person": {"name": {"first": "Ann"}}, "rows": [["a", "b"]]}
        assert render(engine, "{{person.name.first}}", data) == "Ann"
        assert render(engine, "{{rows.0.1}}", data) == "b"

    def test_object_attributes(self, engine):
        class User:
            def __init__(self):
                self.name = "Bob"
                self._secret = "hidden"

        assert render(engine, "{{name}}{{_secret}}", {"name": "x", "user": User()}) == "x"
        assert render(engine, "{{#user}}{{name}}{{_secret}}{{/user}}", {"user": User()}) == "Bob"

    def test_render_escape_flag(self, engine):
        program = engine.compile("<{{{v}}}>")
        assert program.render(engine.new_context({"v": "&"}), escape=True) == "&lt;&amp;&gt;"


class TestSections:

    def test_sequence_renders_once_per_element(self, engine):
        assert render(engine, "{{#items}}[{{.}}]{{/items}}", {"items": [1, 2, 3]}) == "[1][2][3]"

    def test_element_is_top_of_context(self, engine):
        data = {"people": [{"name": "Ann"}, {"name": "Bob"}], "name": "outer"}
        assert render(engine, "{{#people}}{{name}},{{/people}}{{name}}", data) == "Ann,Bob,outer"

    def test_tuple_and_generator(self, engine):
        assert render(engine, "{{#t}}{{.}}{{/t}}", {"t": ("a", "b")}) == "ab"
        assert render(engine, "{{#g}}{{.}}{{/g}}", {"g": (c for c in "xyz")}) == "xyz"

    @pytest.mark.parametrize("value", [[], False, None, "", {}, 0])
    def test_falsy_values_render_nothing(self, engine, value):
        assert render(engine, "<{{#v}}body{{/v}}>", {"v": value}) == "<>"

    def test_missing_value_renders_nothing(self, engine):
        assert render(engine, "<{{#v}}body{{/v}}>", {}) == "<>"

    def test_truthy_scalar_renders_once_with_value_pushed(self, engine):
        assert render(engine, "{{#v}}<{{.}}>{{/v}}", {"v": 5}) == "<5>"
        assert render(engine, "{{#v}}<{{.}}>{{/v}}", {"v": "text"}) == "<text>"

    def test_mapping_is_pushed_not_iterated(self, engine):
        data = {"person": {"name": "Ann", "age": 30}}
        assert render(engine, "{{#person}}{{name}} ({{age}}){{/person}}", data) == "Ann (30)"

    def test_outer_scopes_remain_visible(self, engine):
        data = {"greeting": "hi", "items": [{"n": 1}, {"n": 2}]}
        assert render(engine, "{{#items}}{{greeting}}{{n}} {{/items}}", data) == "hi1 hi2 "

    def test_nested_sections(self, engine):
        data = {"rows": [{"cells": [1, 2]}, {"cells": [3]}]}
        source = "{{#rows}}({{#cells}}{{.}}{{/cells}}){{/rows}}"
        assert render(engine, source, data) == "(12)(3)"

    def test_standalone_section_lines(self, engine):
        source = "List:\n{{#items}}\n- {{.}}\n{{/items}}\nDone\n"
        assert render(engine, source, {"items": ["a", "b"]}) == "List:\n- a\n- b\nDone\n"

    def test_aliased_sections_look_up_their_own_names(self, engine):
        source = "{{#a}}x{{/a}}{{#b}}x{{/b}}"
        assert render(engine, source, {"a": True, "b": False}) == "x"
        assert render(engine, source, {"a": [1, 2], "b": True}) == "xxx"

    def test_context_restored_after_failure(self, engine):
        def boom():
            raise RuntimeError("boom")

        context = engine.new_context({"items": [1, 2], "boom": boom})
        program = engine.compile("{{#items}}{{#items}}{{boom}}{{/items}}{{/items}}")
        with pytest.raises(RuntimeError, match="boom"):
            program.render(context)
        assert len(context) == 1
        assert context.last() == {"items": [1, 2], "boom": boom}


class CountingContext(Context):
    def __init__(self, data):
        super().__init__(data)
        self.pushes = 0

    def push(self, value):
        self.pushes += 1
        super().push(value)


class TestInvertedSections:

    @pytest.mark.parametrize("value", [[], False, None, "", 0])
    def test_renders_once_when_falsy(self, engine, value):
        assert render(engine, "{{^v}}none{{/v}}", {"v": value}) == "none"

    @pytest.mark.parametrize("value", [[1, 2], True, "x", {"k": 1}])
    def test_renders_nothing_when_truthy(self, engine, value):
        assert render(engine, "{{^v}}none{{/v}}", {"v": value}) == ""

    def test_does_not_push(self, engine):
        context = CountingContext({"v": [], "x": "outer"})
        program = engine.compile("{{^v}}{{x}}{{/v}}")
        assert program.render(context) == "outer"
        assert context.pushes == 0
        assert len(context) == 1


class TestDottedResolution:

    def test_unrelated_scope_does_not_change_result(self, engine):
        data = {"a": {"b": {"c": "deep"}}, "other": {"z": 1}}
        assert render(engine, "{{a.b.c}}", data) == "deep"
        assert render(engine, "{{#other}}{{a.b.c}}{{/other}}", data) == "deep"

    def test_pushed_scope_does_not_shadow_root(self, engine):
        data = {"a": {"b": "root"}, "other": {"a": {"b": "inner"}}}
        assert render(engine, "{{#other}}{{#a}}{{b}}{{/a}}{{/other}}", data) == "inner"
        assert render(engine, "{{#other}}{{a.b}}{{/other}}", data) == "root"

    def test_broken_chain_does_not_fall_back(self, engine):
        data = {"a": {"b": {}}, "c": "outer"}
        assert render(engine, "[{{a.b.c}}]", data) == "[]"

    def test_dotted_section(self, engine):
        data = {"a": {"list": [1, 2]}}
        assert render(engine, "{{#a.list}}{{.}}{{/a.list}}", data) == "12"


class TestLambdas:

    def test_variable_lambda_is_rendered_as_template(self, engine):
        data = {"x": "X", "lam": lambda: "{{x}}"}
        assert render(engine, "{{lam}}", data) == "X"

    def test_variable_lambda_escaping(self, engine):
        data = {"x": "&", "lam": lambda: "<b>{{x}}</b>"}
        assert render(engine, "{{lam}}", data) == "&lt;b&gt;&amp;amp;&lt;/b&gt;"
        assert render(engine, "{{{lam}}}", data) == "<b>&amp;</b>"

    def test_variable_lambda_sees_current_scope(self, engine):
        data = {"items": [{"n": 1}, {"n": 2}], "show": lambda: "#{{n}}"}
        assert render(engine, "{{#items}}{{{show}}}{{/items}}", data) == "#1#2"

    def test_section_lambda_receives_raw_body(self, engine):
        seen = []

        def wrap(text):
            seen.append(text)
            return "<" + text + ">"

        data = {"wrap": wrap, "name": "Ann"}
        assert render(engine, "{{#wrap}}{{name}}{{/wrap}}", data) == "<Ann>"
        assert seen == ["{{name}}"]

    def test_section_lambda_output_is_not_escaped(self, engine):
        data = {"lam": lambda text: "<&>"}
        assert render(engine, "{{#lam}}ignored{{/lam}}", data) == "<&>"

    def test_section_lambda_keeps_section_delimiters(self, engine):
        data = {"lam": lambda text: text + "|name|", "name": "Ann"}
        assert render(engine, "{{=| |=}}|#lam|x-|/lam|", data) == "x-Ann"

    @pytest.mark.parametrize("body", ["{{x}}", "\n{{x}}", "\n\n{{x}}\n"])
    def test_section_lambda_output_independent_of_delimiters(self, engine, body):
        data = {"lam": lambda text: text, "x": "X"}
        plain = render(engine, "{{#lam}}" + body + "{{/lam}}", data)
        custom_body = body.replace("{{", "<%").replace("}}", "%>")
        custom = render(engine, "{{=<% %>=}}<%#lam%>" + custom_body + "<%/lam%>", data)
        assert custom == plain

    def test_string_values_are_not_called(self, engine):
        assert render(engine, "{{#s}}[{{.}}]{{/s}}", {"s": "upper"}) == "[upper]"


class TestPartials:

    def test_partial_renders_with_current_context(self, engine, partials):
        partials.set_template("item", "<{{name}}>")
        data = {"items": [{"name": "a"}, {"name": "b"}]}
        assert render(engine, "{{#items}}{{>item}}{{/items}}", data) == "<a><b>"

    def test_indented_partial_prefixes_every_line(self, engine, partials):
        partials.set_template("p", "line1\nline2\n")
        assert render(engine, "  {{>p}}\n", {}) == "  line1\n  line2\n"

    def test_nested_indents_accumulate(self, engine, partials):
        partials.set_template("outer", "begin\n  {{>inner}}\nend\n")
        partials.set_template("inner", "a\nb\n")
        assert render(engine, "  {{>outer}}\n", {}) == "  begin\n    a\n    b\n  end\n"

    def test_render_indent_argument(self, engine, partials):
        partials.set_template("inner", "a\nb\n")
        assert render(engine, "x\n{{>inner}}", {}, indent="> ") == "> x\n> a\n> b\n"

    def test_indent_applies_to_values(self, engine, partials):
        partials.set_template("partial", "|\n{{{content}}}\n|\n")
        source = "\\\n {{>partial}}\n/\n"
        result = render(engine, source, {"content": "<\n->"})
        assert result == "\\\n |\n <\n->\n |\n/\n"

    def test_inline_partial_first_line_not_doubled(self, engine, partials):
        partials.set_template("outer", "a {{>p}}\n")
        partials.set_template("p", "x\ny")
        assert render(engine, "  {{>outer}}\n", {}) == "  a x\n  y\n"

    def test_missing_partial_renders_empty(self, engine, caplog):
        with caplog.at_level("WARNING", logger="mustc"):
            assert render(engine, "a{{>missing}}b", {}) == "ab"
        assert "missing" in caplog.text

    def test_missing_partial_strict(self, partials):
        strict = Engine(EngineConfig(strict_partials=True), partials)
        with pytest.raises(TemplateNotFoundError):
            render(strict, "{{>missing}}", {})

    def test_self_referential_partial_hits_depth_limit(self, partials):
        partials.set_template("self", "x{{>self}}")
        limited = Engine(EngineConfig(max_depth=5), partials)
        context = limited.new_context({})
        with pytest.raises(RecursionLimitError):
            limited.compile("{{>self}}").render(context)
        assert context.depth == 0

    @pytest.mark.parametrize("sections", [4, 6, 10])
    def test_recursive_partial_inside_sections_hits_limit(self, partials, sections):
        names = [f"s{i}" for i in range(sections)]
        opening = "".join("{{#" + n + "}}" for n in names)
        closing = "".join("{{/" + n + "}}" for n in reversed(names))
        partials.set_template("node", opening + "{{>node}}" + closing)
        engine = Engine(EngineConfig(), partials)
        context = engine.new_context({n: True for n in names})
        with pytest.raises(RecursionLimitError):
            engine.compile("{{>node}}").render(context)
        assert context.depth == 0
        assert len(context) == 1

    def test_self_referential_lambda_hits_depth_limit(self, partials):
        limited = Engine(EngineConfig(max_depth=3), partials)
        data = {"again": lambda: "{{again}}"}
        with pytest.raises(RecursionLimitError):
            render(limited, "{{again}}", data)


class TestReuse:

    def test_program_renders_repeatedly(self, engine):
        program = engine.compile("{{#items}}{{.}}{{/items}}")
        for _ in range(3):
            assert program.render(engine.new_context({"items": [1, 2]})) == "12"

    def test_concurrent_renders(self, engine, partials):
        partials.set_template("row", "{{n}};")
        program = engine.compile("{{#rows}}{{>row}}{{/rows}}")

        def run(k):
            rows = [{"n": k * 10 + i} for i in range(5)]
            return program.render(engine.new_context({"rows": rows}))

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(run, range(8)))
        for k, result in enumerate(results):
            assert result == "".join(f"{k * 10 + i};" for i in range(5))
