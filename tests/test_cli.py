"""
Тесты командной строки elt.
"""

import json

import pytest

from elt.cli import main


def test_eval_simple(capsys):
    assert main(["eval", "1 + 2 * 3"]) == 0
    assert capsys.readouterr().out == "7\n"


def test_eval_with_yaml_model(write, capsys):
    model = write("model.yaml", """
        name: Bob
        age: 30
        tags: [a, b]
    """)
    assert main(["eval", "age > 18 && name == 'Bob'", "--model", str(model)]) == 0
    assert capsys.readouterr().out == "true\n"


def test_eval_with_json_model(write, capsys):
    model = write("model.json", '{"user": {"name": "Ann"}}')
    assert main(["eval", "user.name", "--model", str(model)]) == 0
    assert capsys.readouterr().out == "Ann\n"


def test_eval_params(capsys):
    assert main(["eval", "?0 + ?1", "--param", "2", "--param", "3"]) == 0
    assert capsys.readouterr().out == "5\n"
    assert main(["eval", "?0 == 'abc' && ?1", "--param", "abc", "--param", "true"]) == 0
    assert capsys.readouterr().out == "true\n"


def test_eval_json_report(capsys):
    assert main(["eval", "7 / 2", "--json"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report == {"expression": "7 / 2", "value": 3, "kind": "integer", "text": "3"}


def test_eval_json_report_null(capsys):
    assert main(["eval", "null", "--json"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["value"] is None
    assert report["kind"] == "null"
    assert report["text"] == "null"


def test_eval_syntax_error(capsys):
    assert main(["eval", "1 +"]) == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Unexpected end of expression" in captured.err


def test_eval_type_error(capsys):
    assert main(["eval", "1 + 'a'"]) == 2
    assert "Unable to add" in capsys.readouterr().err


def test_eval_missing_model_file(tmp_path, capsys):
    assert main(["eval", "a", "--model", str(tmp_path / "none.yaml")]) == 2
    assert "Model file not found" in capsys.readouterr().err


def test_render_to_stdout(write, capsys):
    tpl = write("page.tpl", """
        # ${title}
        <% for item in items %>
        - ${item}
        <% /for %>
    """)
    model = write("page.yaml", """
        title: List
        items: [one, two]
    """)
    assert main(["render", str(tpl), "--model", str(model)]) == 0
    assert capsys.readouterr().out == "# List\n- one\n- two\n"


def test_render_to_file_with_line_terminator(write, tmp_path):
    tpl = write("hello.tpl", "Hello, ${name}!\nBye\n")
    model = write("m.json", '{"name": "Bob"}')
    out = tmp_path / "out.txt"
    rc = main(["render", str(tpl), "--model", str(model), "--output", str(out), "--line-terminator", "crlf"])
    assert rc == 0
    assert out.read_bytes() == b"Hello, Bob!\r\nBye\r\n"


def test_render_with_config(write, tmp_path):
    cfg = write("elt.yaml", "line_terminator: cr\n")
    tpl = write("t.tpl", "a\nb\n")
    out = tmp_path / "out.txt"
    assert main(["--config", str(cfg), "render", str(tpl), "-o", str(out)]) == 0
    assert out.read_bytes() == b"a\rb\r"


def test_render_error(write, capsys):
    tpl = write("bad.tpl", "x\n${missing}\n")
    assert main(["render", str(tpl)]) == 2
    err = capsys.readouterr().err
    assert "bad.tpl, line 2" in err
    assert "No model to resolve missing" in err


def test_render_missing_template(tmp_path, capsys):
    assert main(["render", str(tmp_path / "none.tpl")]) == 2
    assert "none.tpl" in capsys.readouterr().err


def test_bad_config(write, capsys):
    cfg = write("elt.yaml", "unknown: 1\n")
    assert main(["--config", str(cfg), "eval", "1"]) == 2
    assert "unknown key" in capsys.readouterr().err


def test_check(write, capsys):
    good = write("good.tpl", "<% if a %>\nx\n<% /if %>\n")
    bad = write("bad.tpl", "<% else %>\n")
    assert main(["check", str(good)]) == 0
    assert "OK" in capsys.readouterr().out

    assert main(["check", str(good), str(bad)]) == 2
    out = capsys.readouterr().out
    assert "OK" in out
    assert "FAIL" in out
    assert "Unexpected <%else%>" in out


def test_check_json(write, capsys):
    good = write("good.tpl", "plain\n")
    bad = write("bad.tpl", "${oops\n")
    assert main(["check", "--json", str(good), str(bad)]) == 2
    report = json.loads(capsys.readouterr().out)
    assert [t["ok"] for t in report["templates"]] == [True, False]
    assert report["templates"][0]["lines"] == 1
    assert "Unterminated variable reference" in report["templates"][1]["error"]


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--version"])
    assert exc.value.code == 0
    assert capsys.readouterr().out.startswith("elt ")
