from pathlib import Path

import yaml


def read_yaml_mapping(path: str | Path) -> dict:
    """Parse a YAML settings file; an empty file yields an empty mapping."""
    source = Path(path).expanduser()
    if not source.is_file():
        raise FileNotFoundError(f"settings file not found: {source}")
    try:
        doc = yaml.safe_load(source.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        where = f" (line {mark.line + 1}, column {mark.column + 1})" if mark is not None else ""
        raise ValueError(f"invalid YAML in {source}{where}") from exc

    if doc is None:
        return {}
    if not isinstance(doc, dict):
        raise TypeError(
            f"{source} must hold a mapping at the top level, got {type(doc).__name__}"
        )
    return doc
