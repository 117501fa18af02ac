from __future__ import annotations

import fnmatch
import re
import tomllib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from types import MappingProxyType
from typing import Any


class ConfigError(ValueError):
    """Raised when a CodeStink configuration is invalid."""


RuleId = str
RuleGroup = str

_RULE_ID_RE = re.compile(r"^[A-Z][0-9]{2,}$")

DEFAULT_MIN_CLEAN_LEVEL = 70
DEFAULT_FAIL_ON_STINK = False
DEFAULT_MAX_DUPLICATE_SCAN_LINES = 5000
DEFAULT_INCLUDE: tuple[str, ...] = ("**/*.ts", "**/*.tsx")
DEFAULT_EXCLUDE: tuple[str, ...] = (
    "**/*.d.ts",
    "**/node_modules/**",
    "**/*.spec.ts",
    "**/*.test.ts",
)

DEFAULT_VERBS: tuple[str, ...] = (
    "get",
    "set",
    "fetch",
    "calculate",
    "update",
    "delete",
    "generate",
    "create",
    "filter",
    "handle",
    "process",
    "validate",
    "convert",
    "find",
    "remove",
    "add",
    "save",
    "load",
)
DEFAULT_LOOP_INDEX_NAMES: tuple[str, ...] = ("i", "j", "k", "x", "y", "z")
DEFAULT_GLOBAL_SYMBOLS: tuple[str, ...] = ("window", "document", "console", "localStorage")

# Type markers are matched in order; the first marker whose implied kind
# disagrees with the bound value produces the issue.
DEFAULT_TYPE_MARKERS: Mapping[str, str] = MappingProxyType(
    {
        "is": "boolean",
        "has": "boolean",
        "count": "number",
        "index": "number",
        "num": "number",
        "str": "string",
        "arr": "array",
        "obj": "object",
        "map": "map",
        "set": "set",
        "fn": "function",
    }
)
_KNOWN_TYPE_NAMES = {"boolean", "number", "string", "array", "object", "map", "set", "function"}

# Keep this list in config (not in rules) so configuration can be resolved
# without importing the rule catalogue.
DEFAULT_RULE_GROUPS: dict[RuleGroup, tuple[RuleId, ...]] = {
    # NOTE: Keep these in sync with `codestink.rules.registry`.
    "function": (
        "F01",
        "F02",
        "F03",
        "F04",
        "F05",
        "F06",
        "F07",
        "F08",
        "F09",
        "F10",
        "F11",
        "F12",
    ),
    "naming": ("F04", "F05", "F06", "V01"),
    "variable": ("V01", "V02"),
    "file": ("D01",),
}
DEFAULT_RULE_GROUPS["all"] = tuple(
    dict.fromkeys(
        rule_id for group in ("function", "variable", "file") for rule_id in DEFAULT_RULE_GROUPS[group]
    )
)


@dataclass(frozen=True, slots=True)
class Thresholds:
    max_lines: int = 10
    max_blocks: int = 10
    max_parameters: int = 3
    min_variable_name_length: int = 2
    duplicate_block_lines: int = 5
    duplicate_min_chars: int = 20


@dataclass(frozen=True, slots=True)
class Penalties:
    max_lines: int = 10
    max_blocks: int = 10
    max_parameters: int = 5
    function_name: int = 10
    abstraction_level: int = 15
    boolean_parameter: int = 5
    global_variable: int = 10
    mutable_object: int = 8
    unencapsulated_condition: int = 5
    negative_conditional: int = 3
    variable_name: int = 10
    type_mismatch: int = 15
    duplicate_code: int = 15


@dataclass(frozen=True, slots=True)
class NamingConfig:
    verbs: tuple[str, ...] = DEFAULT_VERBS
    loop_index_names: tuple[str, ...] = DEFAULT_LOOP_INDEX_NAMES
    type_markers: Mapping[str, str] = field(default_factory=lambda: DEFAULT_TYPE_MARKERS)


@dataclass(frozen=True, slots=True)
class RulesConfig:
    enable: str | tuple[str, ...] = "all"
    disable: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class StinkConfig:
    include: tuple[str, ...] = DEFAULT_INCLUDE
    exclude: tuple[str, ...] = DEFAULT_EXCLUDE
    min_clean_level: int = DEFAULT_MIN_CLEAN_LEVEL
    fail_on_stink: bool = DEFAULT_FAIL_ON_STINK
    max_duplicate_scan_lines: int = DEFAULT_MAX_DUPLICATE_SCAN_LINES
    thresholds: Thresholds = field(default_factory=Thresholds)
    penalties: Penalties = field(default_factory=Penalties)
    naming: NamingConfig = field(default_factory=NamingConfig)
    global_symbols: tuple[str, ...] = DEFAULT_GLOBAL_SYMBOLS
    rules: RulesConfig = field(default_factory=RulesConfig)


def validate_config(config: StinkConfig) -> StinkConfig:
    """
    Check numeric invariants of a config built in code.

    `load_config` already validates TOML input; this covers configs assembled
    programmatically (e.g. `dataclasses.replace`) before they reach the engine.
    """

    for group_name, group in (("thresholds", config.thresholds), ("penalties", config.penalties)):
        for f in fields(group):
            value = getattr(group, f.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"`{group_name}.{_dash(f.name)}` must be an integer.")
            if value < 0:
                raise ConfigError(f"`{group_name}.{_dash(f.name)}` must be >= 0.")

    if config.thresholds.duplicate_block_lines < 1:
        raise ConfigError("`thresholds.duplicate-block-lines` must be >= 1.")
    if not (0 <= config.min_clean_level <= 100):
        raise ConfigError("`min-clean-level` must be between 0 and 100.")
    if config.max_duplicate_scan_lines <= 0:
        raise ConfigError("`max-duplicate-scan-lines` must be > 0.")
    for marker, type_name in config.naming.type_markers.items():
        if not marker:
            raise ConfigError("`naming.type-markers` keys must not be empty.")
        if type_name not in _KNOWN_TYPE_NAMES:
            valid = ", ".join(sorted(_KNOWN_TYPE_NAMES))
            raise ConfigError(f"`naming.type-markers.{marker}` must be one of: {valid}.")
    return config


def load_config(project_dir: Path | str = ".") -> StinkConfig:
    """
    Load CodeStink configuration from `pyproject.toml` within `project_dir`.

    If no file / no `[tool.codestink]` table exists, returns defaults.
    """

    pyproject_path = Path(project_dir) / "pyproject.toml"
    if not pyproject_path.exists():
        return StinkConfig()

    try:
        data = tomllib.loads(pyproject_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {pyproject_path}: {exc}") from exc

    tool_table = data.get("tool", {})
    if not isinstance(tool_table, dict):
        return StinkConfig()

    table = tool_table.get("codestink", {})
    if not isinstance(table, dict) or not table:
        return StinkConfig()

    return parse_config_table(table)


def parse_config_table(table: Mapping[str, Any]) -> StinkConfig:
    include = _validate_str_list(_get(table, "include", list(DEFAULT_INCLUDE)), field_name="tool.codestink.include")
    exclude = _validate_str_list(_get(table, "exclude", list(DEFAULT_EXCLUDE)), field_name="tool.codestink.exclude")

    min_clean_level = _get(table, "min-clean-level", DEFAULT_MIN_CLEAN_LEVEL)
    if isinstance(min_clean_level, bool) or not isinstance(min_clean_level, int):
        raise ConfigError("`tool.codestink.min-clean-level` must be an integer.")

    fail_on_stink = _get(table, "fail-on-stink", DEFAULT_FAIL_ON_STINK)
    if not isinstance(fail_on_stink, bool):
        raise ConfigError("`tool.codestink.fail-on-stink` must be a boolean.")

    max_scan_lines = _get(table, "max-duplicate-scan-lines", DEFAULT_MAX_DUPLICATE_SCAN_LINES)
    if isinstance(max_scan_lines, bool) or not isinstance(max_scan_lines, int):
        raise ConfigError("`tool.codestink.max-duplicate-scan-lines` must be an integer.")

    globals_table = _get(table, "globals", {})
    if not isinstance(globals_table, dict):
        raise ConfigError("`tool.codestink.globals` must be a table.")
    global_symbols = _validate_str_list(
        _get(globals_table, "symbols", list(DEFAULT_GLOBAL_SYMBOLS)),
        field_name="tool.codestink.globals.symbols",
    )

    config = StinkConfig(
        include=include,
        exclude=exclude,
        min_clean_level=min_clean_level,
        fail_on_stink=fail_on_stink,
        max_duplicate_scan_lines=max_scan_lines,
        thresholds=_parse_int_table(_get(table, "thresholds", {}), Thresholds, field_name="tool.codestink.thresholds"),
        penalties=_parse_int_table(_get(table, "penalties", {}), Penalties, field_name="tool.codestink.penalties"),
        naming=_parse_naming_config(_get(table, "naming", {})),
        global_symbols=tuple(s for s in global_symbols if s),
        rules=_parse_rules_config(_get(table, "rules", {})),
    )
    return validate_config(config)


def _dash(name: str) -> str:
    return name.replace("_", "-")


def _get(table: Mapping[str, Any], key: str, default: Any) -> Any:
    # Accept both `max-lines` and `max_lines` spellings.
    if key in table:
        return table[key]
    return table.get(key.replace("-", "_"), default)


def _validate_str_list(value: Any, *, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or any(not isinstance(v, str) for v in value):
        raise ConfigError(f"`{field_name}` must be a list of strings.")
    return tuple(v.strip() for v in value)


def _parse_int_table(value: Any, cls: type[Any], *, field_name: str) -> Any:
    if value is None:
        return cls()
    if not isinstance(value, dict):
        raise ConfigError(f"`{field_name}` must be a table.")

    known = {_dash(f.name): f.name for f in fields(cls)}
    kwargs: dict[str, int] = {}
    for raw_key, raw_value in value.items():
        key = _dash(str(raw_key).strip().lower())
        if key not in known:
            valid = ", ".join(sorted(known))
            raise ConfigError(f"`{field_name}` contains unknown key: {raw_key!r}. ({valid})")
        if isinstance(raw_value, bool) or not isinstance(raw_value, int):
            raise ConfigError(f"`{field_name}.{key}` must be an integer.")
        if raw_value < 0:
            raise ConfigError(f"`{field_name}.{key}` must be an integer >= 0.")
        kwargs[known[key]] = raw_value
    return cls(**kwargs)


def _parse_naming_config(value: Any) -> NamingConfig:
    if value is None:
        return NamingConfig()
    if not isinstance(value, dict):
        raise ConfigError("`tool.codestink.naming` must be a table.")

    verbs = _validate_str_list(_get(value, "verbs", list(DEFAULT_VERBS)), field_name="tool.codestink.naming.verbs")
    loop_names = _validate_str_list(
        _get(value, "loop-index-names", list(DEFAULT_LOOP_INDEX_NAMES)),
        field_name="tool.codestink.naming.loop-index-names",
    )

    markers_raw = _get(value, "type-markers", None)
    type_markers: Mapping[str, str] = DEFAULT_TYPE_MARKERS
    if markers_raw is not None:
        if not isinstance(markers_raw, dict) or any(not isinstance(v, str) for v in markers_raw.values()):
            raise ConfigError("`tool.codestink.naming.type-markers` must be a table of strings.")
        type_markers = MappingProxyType({str(k).strip(): v.strip().lower() for k, v in markers_raw.items()})

    return NamingConfig(
        verbs=tuple(v.lower() for v in verbs if v),
        loop_index_names=loop_names,
        type_markers=type_markers,
    )


def _parse_rules_config(value: Any) -> RulesConfig:
    if value is None:
        return RulesConfig()
    if not isinstance(value, dict):
        raise ConfigError("`tool.codestink.rules` must be a table.")

    enable: str | tuple[str, ...]
    enable_raw = value.get("enable", "all")
    if isinstance(enable_raw, str):
        stripped = enable_raw.strip()
        if "," in stripped or ";" in stripped:
            enable = _split_rule_tokens(stripped)
        else:
            enable = stripped or "all"
    elif isinstance(enable_raw, list) and all(isinstance(v, str) for v in enable_raw):
        enable = _split_rule_list(enable_raw)
    else:
        raise ConfigError("`tool.codestink.rules.enable` must be a string or a list of strings.")

    disable_raw = _validate_str_list(value.get("disable", []), field_name="tool.codestink.rules.disable")
    disable = _split_rule_list(disable_raw)

    _validate_rule_tokens((enable,) if isinstance(enable, str) else enable, field_name="tool.codestink.rules.enable")
    _validate_rule_tokens(disable, field_name="tool.codestink.rules.disable")
    return RulesConfig(enable=enable, disable=disable)


def _normalize_group(value: str) -> str:
    return value.strip().lower().replace("-", "_")


def _normalize_rule_id(value: str) -> str:
    # Rule IDs are case-insensitive in UX, but canonicalized internally.
    return value.strip().upper()


def _split_rule_tokens(value: str) -> tuple[str, ...]:
    parts = []
    for raw in value.replace(";", ",").split(","):
        token = raw.strip()
        if token:
            parts.append(token)
    return tuple(parts)


def _split_rule_list(values: Iterable[str]) -> tuple[str, ...]:
    parts: list[str] = []
    for raw in values:
        parts.extend(_split_rule_tokens(raw))
    return tuple(parts)


def _validate_rule_tokens(tokens: Iterable[str], *, field_name: str) -> None:
    for token in tokens:
        stripped = token.strip()
        if not stripped:
            continue
        if _normalize_group(stripped) in DEFAULT_RULE_GROUPS:
            continue
        normalized_id = _normalize_rule_id(stripped)
        if normalized_id in DEFAULT_RULE_GROUPS["all"]:
            continue

        groups = ", ".join(sorted(DEFAULT_RULE_GROUPS))
        raise ConfigError(
            f"`{field_name}` contains unknown rule group or rule id: {token!r}. "
            f"Valid groups: {groups}. Valid ids look like F03/V01."
        )


def compute_enabled_rule_ids(
    config: StinkConfig,
    *,
    available_rule_ids: Iterable[RuleId] | None = None,
) -> set[RuleId]:
    """
    Resolve the final enabled rules set from `rules.enable` + `rules.disable`.

    - `enable = "all"` enables every built-in rule.
    - `enable = ["function", "V01"]` enables group(s) and/or explicit IDs.
    - `disable = ["F07"]` disables specific IDs (or groups).

    If `available_rule_ids` is provided, the result is intersected with it.
    """

    available: set[RuleId] | None = set(available_rule_ids) if available_rule_ids is not None else None

    enable_spec = config.rules.enable
    enable_tokens = (enable_spec,) if isinstance(enable_spec, str) else enable_spec

    enabled: set[RuleId] = set()
    for token in enable_tokens:
        normalized_group = _normalize_group(token)
        if normalized_group in DEFAULT_RULE_GROUPS:
            enabled.update(DEFAULT_RULE_GROUPS[normalized_group])
        else:
            enabled.add(_normalize_rule_id(token))

    for token in config.rules.disable:
        normalized_group = _normalize_group(token)
        if normalized_group in DEFAULT_RULE_GROUPS:
            enabled.difference_update(DEFAULT_RULE_GROUPS[normalized_group])
        else:
            enabled.discard(_normalize_rule_id(token))

    if available is not None:
        enabled.intersection_update(available)

    return enabled


def _match_pattern(rel_posix: str, pattern: str) -> bool:
    if fnmatch.fnmatch(rel_posix, pattern):
        return True
    # `**/` also matches at the root (`**/*.ts` covers `index.ts`).
    while pattern.startswith("**/"):
        pattern = pattern[3:]
        if fnmatch.fnmatch(rel_posix, pattern):
            return True
    return False


def path_matches_any(rel_posix: str, patterns: Iterable[str]) -> bool:
    """
    Return True if the POSIX relative path matches any glob in `patterns`.

    Supported patterns:
    - Directory prefixes: "generated/" matches "generated/..." under root.
    - Globs without slashes: "*.generated.ts" matches basenames.
    - Globs with slashes: "src/**/legacy/*.ts" matches full relative paths.
    """

    basename = rel_posix.rsplit("/", 1)[-1]
    for raw_pattern in patterns:
        pattern = raw_pattern.strip().replace("\\", "/")
        if not pattern:
            continue
        if pattern.startswith("./"):
            pattern = pattern[2:]

        if pattern.endswith("/"):
            if rel_posix.startswith(pattern):
                return True
            continue

        if "/" in pattern:
            if _match_pattern(rel_posix, pattern):
                return True
        elif fnmatch.fnmatch(basename, pattern) or fnmatch.fnmatch(rel_posix, pattern):
            return True

    return False
