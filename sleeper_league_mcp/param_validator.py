"""Central parameter schema validation utility.

Tool parameter schemas live in one place and produce consistent error
messages.

Schema format (dict):
{
  "param_name": {
      "type": type|tuple[type,...],   # e.g. int, str
      "required": bool,               # default False
      "min": number,                  # for numeric types
      "max": number,                  # for numeric types
      "choices": [..],                # allowed values
      "pattern": re.Pattern|str,      # full match for string values
      "default": any,                 # applied if missing & not required
      "nullable": bool                # if True allows None
  }, ...
}

Return: (validated_dict, errors_list)
If errors_list is empty, validation succeeded.
"""
from __future__ import annotations
import re
from typing import Any, Dict, Tuple, List


def _type_name(expected_type) -> str:
    if isinstance(expected_type, tuple):
        return " or ".join(getattr(t, "__name__", str(t)) for t in expected_type)
    return getattr(expected_type, "__name__", str(expected_type))


def validate_params(schema: Dict[str, Dict[str, Any]], values: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
    validated = {}
    errors: List[str] = []

    for name, spec in schema.items():
        val = values.get(name, None)
        required = spec.get("required", False)
        nullable = spec.get("nullable", False)
        expected_type = spec.get("type", Any)

        if val is None:
            if "default" in spec and not required:
                validated[name] = spec["default"]
                continue
            if nullable or not required:
                validated[name] = None
                continue
            errors.append(f"'{name}' is required")
            continue

        # Type checking (allow simple coercion for int/float)
        if expected_type is not Any:
            if expected_type in (int, float) and isinstance(val, str):
                try:
                    val = expected_type(val.strip())
                except ValueError:
                    errors.append(f"'{name}' must be of type {_type_name(expected_type)}")
                    continue
            if isinstance(val, bool) and expected_type in (int, float):
                errors.append(f"'{name}' must be of type {_type_name(expected_type)}")
                continue
            if not isinstance(val, expected_type):
                errors.append(f"'{name}' must be of type {_type_name(expected_type)}")
                continue

        if isinstance(val, str):
            val = val.strip()

        # Numeric bounds
        if isinstance(val, (int, float)):
            if "min" in spec and val < spec["min"]:
                errors.append(f"'{name}' must be >= {spec['min']}")
            if "max" in spec and val > spec["max"]:
                errors.append(f"'{name}' must be <= {spec['max']}")

        if spec.get("choices") and val not in spec["choices"]:
            choices_list = ", ".join(map(str, spec["choices"]))
            errors.append(f"'{name}' must be one of: {choices_list}")

        pattern = spec.get("pattern")
        if pattern is not None and isinstance(val, str):
            compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
            if not compiled.fullmatch(val):
                errors.append(f"'{name}' has an invalid format: {val!r}")

        validated[name] = val

    return validated, errors


def format_errors(errors: List[str]) -> str:
    return "; ".join(errors)
