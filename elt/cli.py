from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, List, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .config import EngineConfig, LINE_TERMINATORS, load_config, normalize_line_terminator
from .errors import ELTUserError
from .expr.evaluator import kind_name, to_text
from .jsonic import dumps as jdumps
from .reports import CheckReport, EvalReport, TemplateCheck
from .template import TemplateEngine
from .version import tool_version

logger = logging.getLogger(__name__)

_yaml = YAML(typ="safe")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="elt",
        description="Expression language and line-oriented template engine",
        add_help=True,
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {tool_version()}")
    p.add_argument("-v", "--verbose", action="store_true", help="отладочный вывод в stderr")
    p.add_argument("--config", metavar="FILE", help="YAML-файл настроек движка")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_model(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--model", metavar="FILE", help="модель данных в формате YAML или JSON")

    sp_eval = sub.add_parser("eval", help="Вычислить одно выражение")
    sp_eval.add_argument("expression", help="текст выражения, например \"count > 3 && name != 'x'\"")
    add_model(sp_eval)
    sp_eval.add_argument(
        "--param",
        action="append",
        metavar="VALUE",
        help="значение позиционного параметра ?0, ?1, ... (YAML-скаляр; можно указать несколько)",
    )
    sp_eval.add_argument("--json", action="store_true", help="вывести JSON-отчет")

    sp_render = sub.add_parser("render", help="Отрендерить шаблон")
    sp_render.add_argument("template", help="путь к файлу шаблона")
    add_model(sp_render)
    sp_render.add_argument("--output", "-o", metavar="FILE", help="файл результата (по умолчанию stdout)")
    sp_render.add_argument(
        "--line-terminator",
        choices=sorted(LINE_TERMINATORS),
        help="разделитель строк результата (перекрывает конфиг)",
    )

    sp_check = sub.add_parser("check", help="Проверить, что шаблоны компилируются")
    sp_check.add_argument("templates", nargs="+", help="пути к файлам шаблонов")
    sp_check.add_argument("--json", action="store_true", help="вывести JSON-отчет")

    return p


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose or os.environ.get("ELT_DEBUG") else logging.WARNING
    root = logging.getLogger("elt")
    root.setLevel(level)
    if not root.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        root.addHandler(h)


def _load_model(path: Optional[str]) -> Any:
    """Загружает модель из YAML/JSON файла (JSON является подмножеством YAML)."""
    if not path:
        return None
    file_path = Path(path)
    if not file_path.is_file():
        raise ValueError(f"Model file not found: {file_path}")
    try:
        return _yaml.load(file_path.read_text(encoding="utf-8"))
    except YAMLError as e:
        raise ValueError(f"Failed to parse model file {file_path}: {e}") from e


def _parse_params(raw: Optional[List[str]]) -> List[Any]:
    """Каждый --param разбирается как YAML-скаляр: 5 → int, true → bool, abc → str."""
    params: List[Any] = []
    for value in raw or []:
        try:
            params.append(_yaml.load(value))
        except YAMLError:
            params.append(value)
    return params


def _cmd_eval(ns: argparse.Namespace, engine: TemplateEngine) -> int:
    value = engine.evaluate(ns.expression, _load_model(ns.model), *_parse_params(ns.param))
    if ns.json:
        report = EvalReport(expression=ns.expression, value=value, kind=kind_name(value), text=to_text(value))
        sys.stdout.write(jdumps(report.model_dump()) + "\n")
    else:
        sys.stdout.write(to_text(value) + "\n")
    return 0


def _cmd_render(ns: argparse.Namespace, engine: TemplateEngine) -> int:
    compiled = engine.compile_file(ns.template)
    model = _load_model(ns.model)
    if ns.output:
        out_path = Path(ns.output)
        with out_path.open("w", encoding=engine.config.encoding, newline="") as f:
            engine.render_to(compiled, model, f)
        logger.debug("Wrote %s", out_path)
    else:
        sys.stdout.write(engine.render(compiled, model))
    return 0


def _cmd_check(ns: argparse.Namespace, engine: TemplateEngine) -> int:
    checks: List[TemplateCheck] = []
    for path in ns.templates:
        try:
            compiled = engine.compile_file(path)
        except (ELTUserError, OSError) as e:
            checks.append(TemplateCheck(path=path, ok=False, error=str(e)))
        else:
            checks.append(TemplateCheck(path=path, ok=True, lines=compiled.line_count))
    report = CheckReport(templates=checks)

    if ns.json:
        sys.stdout.write(jdumps(report.model_dump()) + "\n")
    else:
        for check in report.templates:
            if check.ok:
                sys.stdout.write(f"OK    {check.path} ({check.lines} lines)\n")
            else:
                sys.stdout.write(f"FAIL  {check.error}\n")
    return 0 if report.ok else 2


def _engine(ns: argparse.Namespace) -> TemplateEngine:
    config = load_config(Path(ns.config)) if ns.config else EngineConfig()
    terminator = getattr(ns, "line_terminator", None)
    if terminator:
        config.line_terminator = normalize_line_terminator(terminator)
    return TemplateEngine(config=config)


def main(argv: list[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)
    _setup_logging(ns.verbose)

    try:
        engine = _engine(ns)
        if ns.cmd == "eval":
            return _cmd_eval(ns, engine)
        if ns.cmd == "render":
            return _cmd_render(ns, engine)
        if ns.cmd == "check":
            return _cmd_check(ns, engine)
    except ELTUserError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2
    except ValueError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2
    except OSError as e:
        sys.stderr.write(f"{e}\n")
        return 2

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
