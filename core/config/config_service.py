"""Typed, layered configuration loader with precedence handling."""
from __future__ import annotations

import os
import configparser
from dataclasses import dataclass, fields
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, Tuple, get_type_hints

# --------------------------------------------------------------------------- #
#  Paths & default definitions
# --------------------------------------------------------------------------- #

def _find_project_root() -> Path:
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "doccontrol").is_dir():
            return parent
    return here.parent

PROJECT_ROOT = _find_project_root()
CONFIG_DIR = Path(__file__).resolve().parent
DEFAULTS_INI = CONFIG_DIR / "defaults.ini"
MACHINE_INI = CONFIG_DIR / "config.ini"

ENV_PREFIX = "DOCCTL_"


_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "General": {
        "app_name": "DocControl",
        "version": "1.0.0",
        "timezone": "UTC",
    },
    "Workflow": {
        "edit_lock": "strict",
        "default_approver": "Management Representative",
        "doc_number_prefix": "DOC",
        "doc_number_pattern": "{YYYY}-{seq:03d}",
    },
    "Generator": {
        "api_key_env": "GEMINI_API_KEY",
        "model_generate": "gemini-2.5-pro",
        "model_refine": "gemini-2.5-flash",
        "timeout_seconds": "90",
        "temperature": "0.4",
        "language": "English",
    },
    "Export": {
        "output_dir": (PROJECT_ROOT / "exports").as_posix(),
        "page_size": "A4",
        "font_name": "Helvetica",
        "font_path": "",
        "watermark_unapproved": "true",
        "watermark_text": "UNCONTROLLED COPY",
    },
    "Logging": {
        "level": "INFO",
        "db_path": "",
        "max_entries": "5000",
    },
}


# --------------------------------------------------------------------------- #
#  Datamodels
# --------------------------------------------------------------------------- #

@dataclass
class GeneralConfig:
    app_name: str = "DocControl"
    version: str = "1.0.0"
    timezone: str = "UTC"


@dataclass
class WorkflowConfig:
    edit_lock: str = "strict"
    default_approver: str = "Management Representative"
    doc_number_prefix: str = "DOC"
    doc_number_pattern: str = "{YYYY}-{seq:03d}"


@dataclass
class GeneratorConfig:
    api_key_env: str = "GEMINI_API_KEY"
    model_generate: str = "gemini-2.5-pro"
    model_refine: str = "gemini-2.5-flash"
    timeout_seconds: float = 90.0
    temperature: float = 0.4
    language: str = "English"


@dataclass
class ExportConfig:
    output_dir: Path = PROJECT_ROOT / "exports"
    page_size: str = "A4"
    font_name: str = "Helvetica"
    font_path: str = ""
    watermark_unapproved: bool = True
    watermark_text: str = "UNCONTROLLED COPY"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    db_path: str = ""
    max_entries: int = 5000


@dataclass
class AppConfig:
    general: GeneralConfig
    workflow: WorkflowConfig
    generator: GeneratorConfig
    export: ExportConfig
    logging: LoggingConfig

    @classmethod
    def defaults(cls) -> "AppConfig":
        return cls(
            general=GeneralConfig(),
            workflow=WorkflowConfig(),
            generator=GeneratorConfig(),
            export=ExportConfig(),
            logging=LoggingConfig(),
        )


# --------------------------------------------------------------------------- #
#  Helpers
# --------------------------------------------------------------------------- #

def _cp_to_dict(cp: configparser.ConfigParser) -> Dict[str, Dict[str, Any]]:
    data: Dict[str, Dict[str, Any]] = {}
    for section in cp.sections():
        data[section] = {k: v for k, v in cp.items(section)}
    return data


def _read_ini(path: Path) -> Dict[str, Dict[str, Any]]:
    cp = configparser.ConfigParser(interpolation=None)
    cp.read(path, encoding="utf-8")
    return _cp_to_dict(cp)


def _apply(target: Dict[str, Dict[str, Any]], source: Dict[str, Dict[str, Any]],
           layer: str, origin: str,
           sources: Dict[Tuple[str, str], Dict[str, str]]) -> None:
    for section, items in source.items():
        sec = target.setdefault(section, {})
        for key, value in items.items():
            sec[key] = value
            sources[(section, key)] = {"layer": layer, "source": origin}


def _cast(value: Any, typ: type) -> Any:
    if typ is Path:
        return Path(str(value)).expanduser()
    if typ is bool:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    if typ is int:
        return int(value)
    if typ is float:
        return float(value)
    return typ(value)


def _build_dataclass(cls: type, data: Dict[str, Any]) -> Any:
    # annotations are strings under postponed evaluation
    hints = get_type_hints(cls)
    kwargs = {}
    for field in fields(cls):
        val = data.get(field.name, field.default)
        kwargs[field.name] = _cast(val, hints[field.name])
    return cls(**kwargs)


def _env_overlays(environ: Dict[str, str] | None = None) -> Dict[str, Dict[str, Any]]:
    result: Dict[str, Dict[str, Any]] = {}
    for env_key, value in (os.environ if environ is None else environ).items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        remainder = env_key[len(ENV_PREFIX):]
        parts = remainder.split("__", 1)
        if len(parts) != 2:
            continue
        section, key = parts
        section = section.title()
        key = key.lower()
        result.setdefault(section, {})[key] = value
    return result


def _user_config_path() -> Path:
    if os.name == "nt":
        appdata = os.environ.get("APPDATA") or (Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "DocControl" / "config.ini"
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "doccontrol" / "config.ini"


# --------------------------------------------------------------------------- #
#  ConfigService
# --------------------------------------------------------------------------- #


class ConfigService:
    """Facade merging layered configuration with type safety."""

    def __init__(
        self,
        *,
        defaults_ini: Path = DEFAULTS_INI,
        machine_ini: Path = MACHINE_INI,
        user_ini: Path | None = None,
        environ: Dict[str, str] | None = None,
    ) -> None:
        self._lock = RLock()
        self._defaults_ini = Path(defaults_ini)
        self._machine_ini = Path(machine_ini)
        self._user_ini = Path(user_ini) if user_ini is not None else _user_config_path()
        self._environ = environ
        self.reload()

    # ------------------------------------------------------------------ #
    def reload(self) -> None:
        with self._lock:
            merged: Dict[str, Dict[str, Any]] = {}
            sources: Dict[Tuple[str, str], Dict[str, str]] = {}

            # Layer 0: embedded defaults
            _apply(merged, _DEFAULTS, "code", "embedded", sources)

            # Layer 1: defaults.ini
            if self._defaults_ini.exists():
                _apply(merged, _read_ini(self._defaults_ini), "defaults.ini", str(self._defaults_ini), sources)

            # Layer 2: environment variables
            _apply(merged, _env_overlays(self._environ), "env", "os.environ", sources)

            # Layer 3: machine config
            if self._machine_ini.exists():
                _apply(merged, _read_ini(self._machine_ini), "machine", str(self._machine_ini), sources)

            # Layer 4: user overrides
            if self._user_ini.exists():
                _apply(merged, _read_ini(self._user_ini), "user", str(self._user_ini), sources)

            self._merged = merged
            self._sources = sources

            self.general = _build_dataclass(GeneralConfig, merged.get("General", {}))
            self.workflow = _build_dataclass(WorkflowConfig, merged.get("Workflow", {}))
            self.generator = _build_dataclass(GeneratorConfig, merged.get("Generator", {}))
            self.export = _build_dataclass(ExportConfig, merged.get("Export", {}))
            self.logging = _build_dataclass(LoggingConfig, merged.get("Logging", {}))

    # ------------------------------------------------------------------ #
    @property
    def app_config(self) -> AppConfig:
        return AppConfig(
            general=self.general,
            workflow=self.workflow,
            generator=self.generator,
            export=self.export,
            logging=self.logging,
        )

    def get(self, section: str, key: str, *, cast: Callable[[Any], Any] | type = str) -> Any:
        val = self._merged.get(section, {}).get(key)
        if val is None:
            return None
        if isinstance(cast, type):
            return _cast(val, cast)
        return cast(val)

    def meta_source(self, section: str, key: str) -> Dict[str, str] | None:
        return self._sources.get((section, key))


# Global singleton
config_service = ConfigService()
