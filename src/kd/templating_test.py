import pytest

from kd.errors import TemplateError
from kd.templating import TemplateRenderer, render


def test__render__returns_template_without_control_syntax_unchanged() -> None:
    template = "apiVersion: v1\nkind: ConfigMap\nmetadata:\n  name: plain  \ndata:\n  key: '100%'\n\n"
    assert render(template, {"UNUSED": "x"}) == template


def test__render__substitutes_context_values() -> None:
    assert render("image: app:{{ TAG }}\n", {"TAG": "v1"}) == "image: app:v1\n"


def test__render__supports_conditionals_and_iteration_over_env() -> None:
    template = (
        "{% if equal_fold(STAGE, 'PROD') %}replicas: 3{% else %}replicas: 1{% endif %}\n"
        "{% for key, value in env.items() if has_prefix(key, 'APP_') %}{{ key }}={{ value }}\n{% endfor %}"
    )
    context = {"STAGE": "prod", "APP_A": "1", "APP_B": "2", "OTHER": "3"}
    assert render(template, context) == "replicas: 3\nAPP_A=1\nAPP_B=2\n"


def test__render__function_library() -> None:
    renderer = TemplateRenderer()
    assert renderer.render("{{ replace(NAME, '_', '-') }}", {"NAME": "my_app"}) == "my-app"
    assert renderer.render("{{ indent(BLOCK, 4) }}", {"BLOCK": "a: 1\nb: 2"}) == "    a: 1\n    b: 2"
    assert renderer.render("{{ to_json(env) }}", {"A": "1"}) == '{"A": "1"}'
    assert renderer.render("{{ {'a': [1, 2]} | to_yaml }}", {}) == "a:\n- 1\n- 2"
    assert renderer.render("{{ b64dec(b64enc(V)) }}", {"V": "secret"}) == "secret"


def test__render__undefined_function_raises_template_error_with_origin() -> None:
    with pytest.raises(TemplateError) as excinfo:
        render("value: {{ no_such_function('x') }}\n", {}, origin="deploy/app.yaml")
    assert excinfo.value.origin == "deploy/app.yaml"
    assert "deploy/app.yaml" in str(excinfo.value)


def test__render__malformed_syntax_raises_template_error_with_line() -> None:
    with pytest.raises(TemplateError) as excinfo:
        render("a: 1\n{% if X %}\nb: 2\n", {"X": "1"}, origin="broken.yaml")
    assert excinfo.value.origin == "broken.yaml"
    assert excinfo.value.lineno is not None


def test__render__keeps_crlf_line_endings() -> None:
    template = "kind: ConfigMap\r\ndata:\r\n  tag: {{ TAG }}\r\n"
    assert render(template, {"TAG": "v1"}) == "kind: ConfigMap\r\ndata:\r\n  tag: v1\r\n"
    assert render("a: 1\r\n\r\n", {}) == "a: 1\r\n\r\n"
