# -*- codeing = utf-8 -*-
# @Create: 2023-03-29 4:14 p.m.
# @Update: 2025-10-24 11:53 p.m.
# @Author: John Zhao
import configparser
import logging
import os
import re
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

LOGGER = logging.getLogger(__name__)

MAIL_ENV_PREFIX = "MAIL_"
MAIL_ENV_SUFFIXES = {
    "smtp_server": "SMTP_SERVER",
    "smtp_port": "SMTP_PORT",
    "username": "USERNAME",
    "password": "PASSWORD",
    "from_addr": "FROM",
    "use_starttls": "USE_STARTTLS",
    "use_ssl": "USE_SSL",
    "subject": "SUBJECT",
}
REQUIRED_MAIL_ENV_KEYS = (
    "smtp_server",
    "smtp_port",
    "username",
    "password",
    "from_addr",
)
OPTIONAL_MAIL_BOOL_KEYS = (
    "use_starttls",
    "use_ssl",
)
MAIL_ENV_MAP = {
    key: f"{MAIL_ENV_PREFIX}{suffix}"
    for key, suffix in MAIL_ENV_SUFFIXES.items()
}
_BOOL_TRUE_VALUES = {"1", "true", "yes", "on"}
_BOOL_FALSE_VALUES = {"0", "false", "no", "off"}
MAIL_SECTION = "Mail"
EXTERNAL_MAIL_CONFIG_ENV = "MAIL_CONFIG_PATH"

SMS_SECTION = "Sms"
SMS_ENV_MAP = {
    "account_sid": "TWILIO_ACCOUNT_SID",
    "auth_token": "TWILIO_AUTH_TOKEN",
    "from_number": "TWILIO_FROM_NUMBER",
}

WORKER_SECTION = "Worker"
CHECK_INTERVAL_ENV = "CHECK_INTERVAL"
ROTATION_INTERVAL_ENV = "ROTATION_INTERVAL"
DEFAULT_CHECK_INTERVAL = 60.0
DEFAULT_ROTATION_INTERVAL = 60.0 * 60 * 24
DEFAULT_MAX_WORKERS = 16

PROBE_SECTION = "Probe"
DEFAULT_MAX_TIMEOUT = 5.0

STORAGE_SECTION = "Storage"
_DEFAULT_CHECKS_DIRECTORY_NAME = "checks"
_DEFAULT_STREAMS_DIRECTORY_NAME = "logs"

NOTIFICATION_SECTION = "Notification"
SUPPORTED_CHANNELS = frozenset({"sms", "email"})
DEFAULT_CHANNEL = "sms"
DEFAULT_ALERT_TEMPLATE = (
    "Alert: Your check for {method} {protocol}://{host}/{path} is currently {state}"
)


@dataclass(frozen=True)
class LoggingSettings:
    """Represent the parsed logging configuration values."""

    level_name: str
    level: int
    file_path: Path
    max_bytes: int
    backup_count: int
    fmt: str
    datefmt: Optional[str]
    console: bool


@dataclass(frozen=True)
class WorkerSettings:
    """Timers, limits and storage locations used to assemble the worker."""

    check_interval: float
    rotation_interval: float
    max_workers: int
    max_timeout: float
    checks_directory: Path
    logs_directory: Path
    channel: str
    alert_template: str


LOG_DIR_ENV = "UPTIME_WORKER_HOME"
_LOG_HANDLER_FLAG = "_uptime_worker_managed"
_LOG_HANDLER_KIND = "_uptime_worker_kind"
_LOG_HANDLER_FILE = "file"
_LOG_HANDLER_CONSOLE = "console"
_DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DEFAULT_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
_DEFAULT_LOG_FILENAME = "worker.log"
_DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024
_DEFAULT_LOG_BACKUP_COUNT = 5
_DEFAULT_LOG_DIRECTORY_NAME = "Log"

PROJECT_ROOT = Path(__file__).resolve().parent
APPLICATION_HOME_NAME = "uptime_worker"
DEFAULT_APPLICATION_HOME = PROJECT_ROOT / APPLICATION_HOME_NAME
DEFAULT_CONFIG_FILE = PROJECT_ROOT / "config.ini"


def _normalise_directory(
    path_value: Union[str, os.PathLike, Path],
    *,
    base_dir: Optional[Path] = None,
) -> str:
    """Normalize a path to an absolute form and ensure it ends with a separator."""

    if path_value is None:
        raise ValueError("Missing directory path value")

    path = Path(path_value).expanduser()
    if path.is_absolute():
        resolved = path.resolve()
    else:
        if base_dir is not None:
            base_path = Path(base_dir).expanduser().resolve()
            resolved = (base_path / path).resolve()
        else:
            resolved = path.resolve()

    normalised = str(resolved)
    if not normalised.endswith(os.sep):
        normalised += os.sep
    return normalised


def _resolve_directory(raw_value: object, *, base_home: Path,
                       default_name: str) -> Path:
    text = str(raw_value).strip() if raw_value is not None else ""
    if text:
        normalised = _normalise_directory(text, base_dir=base_home)
        return Path(normalised).resolve()
    return (base_home / default_name).resolve()


def _parse_log_level(value: object,
                     *,
                     default: str = "INFO") -> tuple[str, int]:
    text = str(value).strip() if value is not None else ""
    if not text:
        text = default
    normalised = text.upper()
    aliases = {
        "WARN": "WARNING",
        "FATAL": "CRITICAL",
        "TRACE": "NOTSET",
    }
    mapped = aliases.get(normalised, normalised)
    level_value = getattr(logging, mapped, None)
    if isinstance(level_value, int):
        return mapped, level_value
    try:
        numeric_level = int(text)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Unable to parse log level: {value!r}") from exc
    if numeric_level < 0:
        raise ValueError(
            f"Log level must be a non-negative integer: {numeric_level}")
    level_name = logging.getLevelName(numeric_level)
    if not isinstance(level_name, str):
        level_name = str(numeric_level)
    return level_name.upper(), numeric_level


_SIZE_UNITS = {
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
}


def _parse_size_value(value: object,
                      *,
                      default: int = _DEFAULT_LOG_MAX_BYTES) -> int:
    text = str(value).strip() if value is not None else ""
    if not text:
        return max(int(default), 0)
    match = re.fullmatch(r"\s*(\d+(?:\.\d+)?)\s*([kmg]?b)?\s*",
                         text,
                         flags=re.IGNORECASE)
    if not match:
        raise ValueError(f"Unable to parse log size: {value!r}")
    number = float(match.group(1))
    unit = match.group(2) or "B"
    factor = _SIZE_UNITS[unit.upper()]
    return max(int(number * factor), 0)


def _parse_bool_option(value: object, *, default: bool = True) -> bool:
    if value is None:
        return default
    text = str(value).strip().lower()
    if not text:
        return default
    if text in _BOOL_TRUE_VALUES:
        return True
    if text in _BOOL_FALSE_VALUES:
        return False
    raise ValueError(f"Unable to parse boolean value: {value!r}")


def _parse_int_option(
    value: object,
    *,
    default: int,
    minimum: Optional[int] = None,
) -> int:
    text = str(value).strip() if value is not None else ""
    if not text:
        result = int(default)
    else:
        try:
            result = int(text)
        except (TypeError, ValueError) as exc:
            raise ValueError(
                f"Unable to parse integer value: {value!r}") from exc
    if minimum is not None and result < minimum:
        raise ValueError(
            f"Value {result} is smaller than the minimum {minimum}")
    return result


def _parse_positive_float(value: object, *, default: float) -> float:
    text = str(value).strip() if value is not None else ""
    if not text:
        return float(default)
    try:
        result = float(text)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Unable to parse number: {value!r}") from exc
    if result <= 0:
        raise ValueError(f"Value must be positive: {result}")
    return result


def get_logdir():
    """Return the application home directory.

    Priority order:
    1. Environment variable ``UPTIME_WORKER_HOME``
    2. ``config.ini`` in the working directory or repo root, option
       ``[Logging].log_file``
    3. Project default directory ``uptime_worker``
    """

    env_path = os.environ.get(LOG_DIR_ENV)
    if env_path:
        try:
            return _normalise_directory(env_path)
        except (OSError, ValueError) as exc:  # pragma: no cover
            LOGGER.warning("Environment variable %s has an invalid value: %s",
                           LOG_DIR_ENV, exc)

    candidate_configs = [
        Path("config.ini"),
        DEFAULT_CONFIG_FILE,
    ]

    for config_path in candidate_configs:
        if not config_path.is_file():
            continue

        config = configparser.RawConfigParser()
        resolved_path = config_path.resolve()
        config.read(os.fspath(resolved_path))
        if not config.has_option("Logging", "log_file"):
            continue

        raw_value = config.get("Logging", "log_file", fallback="").strip()
        if not raw_value:
            continue

        try:
            return _normalise_directory(raw_value,
                                        base_dir=resolved_path.parent)
        except (OSError, ValueError) as exc:  # pragma: no cover
            LOGGER.warning(
                "[Logging].log_file in %s could not be parsed: %s",
                config_path,
                exc,
            )

    return _normalise_directory(DEFAULT_APPLICATION_HOME)


def get_config_directory() -> Path:
    """Return the configuration directory path."""

    return Path(get_logdir()).resolve() / "Config"


def _config_file_path() -> Path:
    return get_config_directory() / "Config.ini"


def _load_config_parser(
        *,
        ensure_dir: bool = False) -> Tuple[configparser.RawConfigParser, Path]:
    config_path = _config_file_path()
    if ensure_dir:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        if not config_path.exists():
            writeconfig(str(config_path.parent))

    parser = configparser.RawConfigParser()
    if config_path.exists():
        parser.read(os.fspath(config_path), encoding="utf-8")
    return parser, config_path


def _section_option(parser: configparser.RawConfigParser, section: str,
                    option: str, fallback: str = "") -> str:
    if not parser.has_section(section):
        return fallback
    return parser.get(section, option, fallback=fallback)


def get_logging_settings() -> LoggingSettings:
    """Read and parse logging configuration into ``LoggingSettings``."""

    parser, _ = _load_config_parser()
    section = "Logging"

    def _option(name: str, fallback: str = "") -> str:
        return _section_option(parser, section, name, fallback)

    raw_level = _option("log_level", "INFO")
    try:
        level_name, level_value = _parse_log_level(raw_level, default="INFO")
    except ValueError as exc:
        raise ValueError(
            f"[Logging].log_level is invalid: {raw_level!r}") from exc

    raw_max_size = _option("log_max_size", "")
    try:
        max_bytes = _parse_size_value(raw_max_size,
                                      default=_DEFAULT_LOG_MAX_BYTES)
    except ValueError as exc:
        raise ValueError(
            f"[Logging].log_max_size is invalid: {raw_max_size!r}") from exc

    raw_backup_count = _option("log_backup_count",
                               str(_DEFAULT_LOG_BACKUP_COUNT))
    try:
        backup_count = _parse_int_option(
            raw_backup_count,
            default=_DEFAULT_LOG_BACKUP_COUNT,
            minimum=0,
        )
    except ValueError as exc:
        raise ValueError(
            f"[Logging].log_backup_count is invalid: {raw_backup_count!r}"
        ) from exc

    raw_console = _option("log_console", "true")
    try:
        console_enabled = _parse_bool_option(raw_console, default=True)
    except ValueError as exc:
        raise ValueError(
            f"[Logging].log_console is invalid: {raw_console!r}") from exc

    log_format = _option("log_format",
                         _DEFAULT_LOG_FORMAT).strip() or _DEFAULT_LOG_FORMAT
    log_datefmt = _option("log_datefmt",
                          _DEFAULT_LOG_DATEFMT).strip() or _DEFAULT_LOG_DATEFMT

    base_home = Path(get_logdir()).resolve()
    directory_path = _resolve_directory(
        _option("log_directory", ""),
        base_home=base_home,
        default_name=_DEFAULT_LOG_DIRECTORY_NAME,
    )

    raw_filename = _option(
        "log_filename", _DEFAULT_LOG_FILENAME).strip() or _DEFAULT_LOG_FILENAME
    file_path = Path(raw_filename)
    if file_path.is_absolute():
        file_path = file_path.resolve()
    else:
        file_path = (directory_path / file_path).resolve()

    return LoggingSettings(
        level_name=level_name,
        level=level_value,
        file_path=file_path,
        max_bytes=max_bytes,
        backup_count=backup_count,
        fmt=log_format,
        datefmt=log_datefmt,
        console=console_enabled,
    )


def configure_logging(
    *,
    replace_existing: bool = False,
    install_console: Optional[bool] = None,
) -> LoggingSettings:
    """Initialise logging handlers based on the configuration.

    :param replace_existing: Remove existing worker handlers if True.
    :param install_console: Force enable/disable console output, defaults to config.
    :return: The applied ``LoggingSettings``.
    """

    settings = get_logging_settings()
    console_enabled = settings.console if install_console is None else bool(
        install_console)

    settings.file_path.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.level)

    managed_handlers = [
        handler for handler in root_logger.handlers
        if getattr(handler, _LOG_HANDLER_FLAG, False)
    ]

    if replace_existing and managed_handlers:
        for handler in managed_handlers:
            _remove_handler(root_logger, handler)
        managed_handlers = []

    desired_path = os.fspath(settings.file_path)
    formatter = logging.Formatter(settings.fmt, settings.datefmt or None)

    file_handler: Optional[RotatingFileHandler] = None
    retained_handlers = []
    for handler in managed_handlers:
        kind = getattr(handler, _LOG_HANDLER_KIND, None)
        if kind == _LOG_HANDLER_FILE:
            base_filename = getattr(handler, "baseFilename", "")
            if os.path.abspath(base_filename) != os.path.abspath(desired_path):
                _remove_handler(root_logger, handler)
                continue
            file_handler = handler  # reuse existing
        retained_handlers.append(handler)
    managed_handlers = retained_handlers

    if file_handler is None:
        file_handler = RotatingFileHandler(
            desired_path,
            maxBytes=settings.max_bytes,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(settings.level)
        file_handler.setFormatter(formatter)
        setattr(file_handler, _LOG_HANDLER_FLAG, True)
        setattr(file_handler, _LOG_HANDLER_KIND, _LOG_HANDLER_FILE)
        root_logger.addHandler(file_handler)
    else:
        file_handler.maxBytes = settings.max_bytes
        file_handler.backupCount = settings.backup_count
        file_handler.setLevel(settings.level)
        file_handler.setFormatter(formatter)

    console_handler: Optional[logging.Handler] = None
    for handler in managed_handlers:
        if getattr(handler, _LOG_HANDLER_KIND, None) == _LOG_HANDLER_CONSOLE:
            console_handler = handler
            break

    if console_enabled:
        if console_handler is None:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(settings.level)
            console_handler.setFormatter(formatter)
            setattr(console_handler, _LOG_HANDLER_FLAG, True)
            setattr(console_handler, _LOG_HANDLER_KIND, _LOG_HANDLER_CONSOLE)
            root_logger.addHandler(console_handler)
        else:
            console_handler.setLevel(settings.level)
            console_handler.setFormatter(formatter)
    elif console_handler is not None:
        _remove_handler(root_logger, console_handler)

    return settings


def _remove_handler(root_logger: logging.Logger,
                    handler: logging.Handler) -> None:
    root_logger.removeHandler(handler)
    try:
        handler.close()
    except (OSError, ValueError):  # pragma: no cover - best effort cleanup
        pass


def reset_logging_configuration() -> None:
    """Remove handlers previously added by ``configure_logging``."""

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, _LOG_HANDLER_FLAG, False):
            _remove_handler(root_logger, handler)


def _env_or_option(env_name: str, parser: configparser.RawConfigParser,
                   section: str, option: str) -> Tuple[str, str]:
    env_value = os.environ.get(env_name)
    if env_value:
        return env_value, f"environment variable {env_name}"
    return (_section_option(parser, section, option),
            f"[{section}].{option}")


def get_worker_settings() -> WorkerSettings:
    """Read timers, limits and storage paths; invalid values raise ``ValueError``."""

    parser, _ = _load_config_parser()

    raw_interval, source = _env_or_option(CHECK_INTERVAL_ENV, parser,
                                          WORKER_SECTION, "check_interval")
    try:
        check_interval = _parse_positive_float(raw_interval,
                                               default=DEFAULT_CHECK_INTERVAL)
    except ValueError as exc:
        raise ValueError(f"{source} is invalid: {raw_interval!r}") from exc

    raw_rotation, source = _env_or_option(ROTATION_INTERVAL_ENV, parser,
                                          WORKER_SECTION, "rotation_interval")
    try:
        rotation_interval = _parse_positive_float(
            raw_rotation, default=DEFAULT_ROTATION_INTERVAL)
    except ValueError as exc:
        raise ValueError(f"{source} is invalid: {raw_rotation!r}") from exc

    raw_workers = _section_option(parser, WORKER_SECTION, "max_workers")
    try:
        max_workers = _parse_int_option(raw_workers,
                                        default=DEFAULT_MAX_WORKERS,
                                        minimum=1)
    except ValueError as exc:
        raise ValueError(
            f"[{WORKER_SECTION}].max_workers is invalid: {raw_workers!r}"
        ) from exc

    raw_max_timeout = _section_option(parser, PROBE_SECTION, "max_timeout")
    try:
        max_timeout = _parse_positive_float(raw_max_timeout,
                                            default=DEFAULT_MAX_TIMEOUT)
    except ValueError as exc:
        raise ValueError(
            f"[{PROBE_SECTION}].max_timeout is invalid: {raw_max_timeout!r}"
        ) from exc

    base_home = Path(get_logdir()).resolve()
    checks_directory = _resolve_directory(
        _section_option(parser, STORAGE_SECTION, "checks_directory"),
        base_home=base_home,
        default_name=_DEFAULT_CHECKS_DIRECTORY_NAME,
    )
    logs_directory = _resolve_directory(
        _section_option(parser, STORAGE_SECTION, "logs_directory"),
        base_home=base_home,
        default_name=_DEFAULT_STREAMS_DIRECTORY_NAME,
    )

    template = _section_option(parser, NOTIFICATION_SECTION,
                               "alert_template").strip()

    return WorkerSettings(
        check_interval=check_interval,
        rotation_interval=rotation_interval,
        max_workers=max_workers,
        max_timeout=max_timeout,
        checks_directory=checks_directory,
        logs_directory=logs_directory,
        channel=get_notification_channel(parser),
        alert_template=template or DEFAULT_ALERT_TEMPLATE,
    )


def get_notification_channel(
        parser: Optional[configparser.RawConfigParser] = None) -> str:
    if parser is None:
        parser, _ = _load_config_parser()
    raw_channel = _section_option(parser, NOTIFICATION_SECTION, "channel",
                                  DEFAULT_CHANNEL)
    channel = raw_channel.strip().lower() or DEFAULT_CHANNEL
    if channel not in SUPPORTED_CHANNELS:
        raise ValueError(
            f"[{NOTIFICATION_SECTION}].channel is invalid: {raw_channel!r}")
    return channel


def _reject_placeholder(key: str, value: Any, source: str) -> None:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.startswith("<") and stripped.endswith(">"):
            raise ValueError(
                f"{source} contains placeholder field {key}={value!r}; provide real settings"
            )


def read_sms_configuration() -> Dict[str, str]:
    """Load Twilio credentials from environment variables or ``[Sms]``."""

    values = {
        key: os.environ[env_name]
        for key, env_name in SMS_ENV_MAP.items()
        if os.environ.get(env_name)
    }
    source = "environment variables"
    if not values:
        parser, config_path = _load_config_parser()
        source = f"configuration file {os.fspath(config_path)}"
        values = {
            key: _section_option(parser, SMS_SECTION, key).strip()
            for key in SMS_ENV_MAP
        }

    missing_keys = [key for key in SMS_ENV_MAP if not values.get(key)]
    if missing_keys:
        raise ValueError("{} is missing the following SMS fields: {}".format(
            source, ", ".join(missing_keys)))
    for key, value in values.items():
        _reject_placeholder(key, value, source)
    return values


def read_mail_configuration():
    """Load mail configuration from env vars, external files, or bundled defaults."""

    mailconfig = _load_mail_config_from_env()
    if mailconfig:
        return mailconfig

    mailconfig = _load_mail_config_from_external_file()
    if mailconfig:
        return mailconfig

    return _load_mail_config_from_project_file()


def _coerce_mail_bool(value: Any, *, key: str, source: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        normalised = value.strip().lower()
        if normalised in _BOOL_TRUE_VALUES:
            return True
        if normalised in _BOOL_FALSE_VALUES:
            return False
    raise ValueError(f"{key} from {source} is not a valid boolean: {value!r}")


def _normalise_mail_values(values: Mapping[str, Any], *,
                           source: str) -> Dict[str, Any]:
    normalised: Dict[str, Any] = {}

    for key in REQUIRED_MAIL_ENV_KEYS:
        if key not in values:
            raise ValueError(
                f"{source} is missing mail configuration field: {key}")
        value = values[key]
        _reject_placeholder(key, value, source)
        normalised[key] = value

    for key in OPTIONAL_MAIL_BOOL_KEYS:
        value = values.get(key, False)
        _reject_placeholder(key, value, source)
        normalised[key] = _coerce_mail_bool(value, key=key, source=source)

    subject = values.get("subject")
    if isinstance(subject, str) and subject.strip():
        normalised["subject"] = subject.strip()

    return normalised


def _read_mail_section(config: configparser.RawConfigParser) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for key in MAIL_ENV_MAP:
        raw_value = config.get(MAIL_SECTION, key, fallback=None)
        if raw_value is not None:
            values[key] = raw_value
    return values


def _load_mail_config_from_env():
    values: Dict[str, Any] = {}
    missing_required = []
    for key, env_name in MAIL_ENV_MAP.items():
        value = os.environ.get(env_name)
        if value:
            values[key] = value
        elif key in REQUIRED_MAIL_ENV_KEYS:
            missing_required.append(key)

    if values and missing_required:
        raise ValueError(
            "Environment variables are missing the following mail fields: {}".
            format(", ".join(missing_required)))

    if values:
        return _normalise_mail_values(values, source="environment variables")

    return None


def _load_mail_config_from_external_file():
    config_path = os.environ.get(EXTERNAL_MAIL_CONFIG_ENV)
    if not config_path:
        return None

    path = Path(config_path).expanduser()
    if not path.is_file():
        raise FileNotFoundError(
            f"Specified mail configuration file does not exist: {path}")

    config = configparser.RawConfigParser()
    config.read(path, encoding="utf-8")

    if not config.has_section(MAIL_SECTION):
        raise ValueError(
            f"External configuration file is missing [{MAIL_SECTION}] section: {path}"
        )

    values = _read_mail_section(config)
    missing_keys = [
        key for key in REQUIRED_MAIL_ENV_KEYS if not values.get(key)
    ]
    if missing_keys:
        raise ValueError(
            "External configuration file is missing the following mail fields: {}"
            .format(", ".join(missing_keys)))

    return _normalise_mail_values(values,
                                  source=f"external configuration file {path}")


def _load_mail_config_from_project_file():
    primary_path = _config_file_path()
    candidate_paths: list[Path] = [primary_path]

    for extra in (Path("config.ini").resolve(), DEFAULT_CONFIG_FILE.resolve()):
        if extra not in candidate_paths:
            candidate_paths.append(extra)

    errors: list[Exception] = []

    for path in candidate_paths:
        if path == primary_path and not path.exists():
            writeconfig(str(path.parent))

        if not path.is_file():
            continue

        config = configparser.RawConfigParser()
        config.read(os.fspath(path), encoding="utf-8")

        if not config.has_section(MAIL_SECTION):
            continue

        values = _read_mail_section(config)
        missing_keys = [
            key for key in REQUIRED_MAIL_ENV_KEYS if not values.get(key)
        ]
        if missing_keys:
            errors.append(
                ValueError(
                    "Configuration file {} is missing the following mail fields: {}"
                    .format(os.fspath(path), ", ".join(missing_keys))))
            continue

        try:
            return _normalise_mail_values(
                values, source=f"configuration file {os.fspath(path)}")
        except ValueError as exc:
            errors.append(exc)
            continue

    if errors:
        raise errors[0]

    raise ValueError(
        "No Config.ini with complete mail settings found; update [Mail] in any of {}"
        .format(", ".join(os.fspath(path) for path in candidate_paths)))


def writeconfig(configDir: str) -> None:
    config_dir = Path(configDir).expanduser()
    config_dir.mkdir(parents=True, exist_ok=True)
    config_file_path = config_dir / "Config.ini"
    home = config_dir.parent

    info = configparser.RawConfigParser()
    info.add_section("Logging")
    info.set("Logging", "log_level", "info")
    info.set("Logging", "log_file", _normalise_directory(home))
    info.set(
        "Logging",
        "log_directory",
        _normalise_directory(home / _DEFAULT_LOG_DIRECTORY_NAME),
    )
    info.set("Logging", "log_filename", _DEFAULT_LOG_FILENAME)
    info.set("Logging", "log_max_size", "10MB")
    info.set("Logging", "log_backup_count", str(_DEFAULT_LOG_BACKUP_COUNT))
    info.set("Logging", "log_format", _DEFAULT_LOG_FORMAT)
    info.set("Logging", "log_datefmt", _DEFAULT_LOG_DATEFMT)
    info.set("Logging", "log_console", "true")

    info.add_section(WORKER_SECTION)
    info.set(WORKER_SECTION, "check_interval", str(DEFAULT_CHECK_INTERVAL))
    info.set(WORKER_SECTION, "rotation_interval",
             str(DEFAULT_ROTATION_INTERVAL))
    info.set(WORKER_SECTION, "max_workers", str(DEFAULT_MAX_WORKERS))

    info.add_section(PROBE_SECTION)
    info.set(PROBE_SECTION, "max_timeout", str(DEFAULT_MAX_TIMEOUT))

    info.add_section(STORAGE_SECTION)
    info.set(STORAGE_SECTION, "checks_directory",
             _normalise_directory(home / _DEFAULT_CHECKS_DIRECTORY_NAME))
    info.set(STORAGE_SECTION, "logs_directory",
             _normalise_directory(home / _DEFAULT_STREAMS_DIRECTORY_NAME))

    info.add_section(NOTIFICATION_SECTION)
    info.set(NOTIFICATION_SECTION, "channel", DEFAULT_CHANNEL)
    info.set(NOTIFICATION_SECTION, "alert_template", DEFAULT_ALERT_TEMPLATE)

    mail_placeholders = {
        "smtp_server": "<SMTP_SERVER>",
        "smtp_port": "<SMTP_PORT>",
        "username": "<USERNAME>",
        "password": "<PASSWORD>",
        "from_addr": "<FROM_ADDRESS>",
        "use_starttls": "false",
        "use_ssl": "false",
        "subject": "Uptime Alert",
    }
    info.add_section(MAIL_SECTION)
    for option, value in mail_placeholders.items():
        info.set(MAIL_SECTION, option, value)

    info.add_section(SMS_SECTION)
    info.set(SMS_SECTION, "account_sid", "<ACCOUNT_SID>")
    info.set(SMS_SECTION, "auth_token", "<AUTH_TOKEN>")
    info.set(SMS_SECTION, "from_number", "<FROM_NUMBER>")

    with config_file_path.open("w", encoding="utf-8") as config_file:
        info.write(config_file)
