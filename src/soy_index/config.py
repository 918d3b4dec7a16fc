"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "soy_index.toml"
MAX_CONCURRENCY_CAP = 64

DEFAULT_EXTENSION = ".soy"
DEFAULT_WILDCARD = "*"
DEFAULT_MAX_CONCURRENCY = 8
DEFAULT_EXCLUDE_GLOBS = ("**/.git/**", "**/node_modules/**", "**/.venv/**")


@dataclass(slots=True, frozen=True)
class IndexConfig:
    """Template file recognition settings."""

    extension: str
    exclude_globs: tuple[str, ...]
    wildcard: str


@dataclass(slots=True, frozen=True)
class QueryConfig:
    """Cross-file query settings."""

    max_concurrency: int
    reflag_failed_paths: bool


@dataclass(slots=True, frozen=True)
class IndexerConfig:
    """Fully merged indexer configuration."""

    project_root: Path
    index: IndexConfig
    query: QueryConfig
    audit_log_path: Path | None

    def to_public_dict(self) -> dict[str, object]:
        """Return a serializable config snapshot."""
        return {
            "project_root": str(self.project_root),
            "index": {
                "extension": self.index.extension,
                "exclude_globs": list(self.index.exclude_globs),
                "wildcard": self.index.wildcard,
            },
            "query": {
                "max_concurrency": self.query.max_concurrency,
                "reflag_failed_paths": self.query.reflag_failed_paths,
            },
            "logging": {
                "audit_log": str(self.audit_log_path) if self.audit_log_path else None,
            },
        }


@dataclass(slots=True, frozen=True)
class Overrides:
    """Optional programmatic overrides applied at highest precedence."""

    extension: str | None = None
    max_concurrency: int | None = None
    reflag_failed_paths: bool | None = None
    audit_log_path: Path | None = None


def default_config(project_root: Path) -> IndexerConfig:
    """Build default config for a given project root."""
    return IndexerConfig(
        project_root=project_root.resolve(),
        index=IndexConfig(
            extension=DEFAULT_EXTENSION,
            exclude_globs=DEFAULT_EXCLUDE_GLOBS,
            wildcard=DEFAULT_WILDCARD,
        ),
        query=QueryConfig(
            max_concurrency=DEFAULT_MAX_CONCURRENCY,
            reflag_failed_paths=True,
        ),
        audit_log_path=None,
    )


def load_project_config_file(project_root: Path) -> dict[str, object]:
    """Load optional soy_index.toml from the project root."""
    config_path = project_root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def normalize_extension(value: str, name: str) -> str:
    """Return a lowercase extension with a single leading dot."""
    stripped = value.strip().lower().lstrip(".")
    if not stripped or any(char in stripped for char in "/\\*?"):
        raise ValueError(f"Config field '{name}' must be a file extension such as '.soy'.")
    return f".{stripped}"


def merge_config(
    base: IndexerConfig, project_payload: dict[str, object], overrides: Overrides
) -> IndexerConfig:
    """Merge defaults, project config, then overrides."""
    index_payload = _get_table(project_payload, "index")
    query_payload = _get_table(project_payload, "query")
    logging_payload = _get_table(project_payload, "logging")

    extension = base.index.extension
    if "extension" in index_payload:
        extension = normalize_extension(
            _string(index_payload["extension"], "index.extension"), "index.extension"
        )
    exclude_globs = base.index.exclude_globs
    if "exclude_globs" in index_payload:
        exclude_globs = _tuple_of_strings(index_payload["exclude_globs"], "index", "exclude_globs")
    wildcard = base.index.wildcard
    if "wildcard" in index_payload:
        wildcard = _string(index_payload["wildcard"], "index.wildcard")
        if not wildcard:
            raise ValueError("Config field 'index.wildcard' must be a non-empty string.")

    max_concurrency = _optional_positive_int_with_cap(
        query_payload.get("max_concurrency"),
        "query.max_concurrency",
        base.query.max_concurrency,
        MAX_CONCURRENCY_CAP,
    )
    reflag_failed_paths = base.query.reflag_failed_paths
    if "reflag_failed_paths" in query_payload:
        raw_reflag = query_payload["reflag_failed_paths"]
        if not isinstance(raw_reflag, bool):
            raise ValueError("Config field 'query.reflag_failed_paths' must be a boolean.")
        reflag_failed_paths = raw_reflag

    audit_log_path = base.audit_log_path
    if "audit_log" in logging_payload:
        raw_audit_log = _string(logging_payload["audit_log"], "logging.audit_log")
        audit_log_path = (base.project_root / raw_audit_log).resolve() if raw_audit_log else None

    merged = IndexerConfig(
        project_root=base.project_root,
        index=IndexConfig(
            extension=extension,
            exclude_globs=exclude_globs,
            wildcard=wildcard,
        ),
        query=QueryConfig(
            max_concurrency=max_concurrency,
            reflag_failed_paths=reflag_failed_paths,
        ),
        audit_log_path=audit_log_path,
    )
    return apply_overrides(merged, overrides)


def apply_overrides(config: IndexerConfig, overrides: Overrides) -> IndexerConfig:
    """Apply programmatic overrides at highest precedence."""
    extension = config.index.extension
    if overrides.extension is not None:
        extension = normalize_extension(overrides.extension, "overrides.extension")
    max_concurrency = _optional_positive_int_with_cap(
        overrides.max_concurrency,
        "overrides.max_concurrency",
        config.query.max_concurrency,
        MAX_CONCURRENCY_CAP,
    )
    reflag_failed_paths = (
        overrides.reflag_failed_paths
        if overrides.reflag_failed_paths is not None
        else config.query.reflag_failed_paths
    )
    audit_log_path = config.audit_log_path
    if overrides.audit_log_path is not None:
        audit_log_path = overrides.audit_log_path.resolve()
    return IndexerConfig(
        project_root=config.project_root,
        index=IndexConfig(
            extension=extension,
            exclude_globs=config.index.exclude_globs,
            wildcard=config.index.wildcard,
        ),
        query=QueryConfig(
            max_concurrency=max_concurrency,
            reflag_failed_paths=reflag_failed_paths,
        ),
        audit_log_path=audit_log_path,
    )


def load_effective_config(project_root: Path, overrides: Overrides | None = None) -> IndexerConfig:
    """Load effective config using merge order defaults -> project file -> overrides."""
    resolved_root = project_root.resolve()
    base = default_config(resolved_root)
    payload = load_project_config_file(resolved_root)
    return merge_config(base, payload, overrides or Overrides())


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _string(value: object, name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"Config field '{name}' must be a string.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{section}.{field}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value
