"""Configuration of the average calculator from a YAML file and the environment."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Mapping

import yaml

from flightpipe.logconfig import init_logger

log = logging.getLogger(__name__)

ENV_PREFIX = "CLI"
COMMA_SEPARATOR = ","

_KEYS = (
    "id",
    "log.level",
    "rabbitmq.address",
    "rabbitmq.queue.input",
    "rabbitmq.queue.output",
    "savers.count",
    "name",
    "healthchecker.addresses",
)

_UNSIGNED = re.compile(r"\+?[0-9]+")


class ConfigError(ValueError):
    """The configuration is missing a value or holds an invalid one."""


@dataclass
class AvgCalculatorConfig:
    id: str
    input_queue_name: str
    output_queue_name: str
    rabbit_address: str
    savers_count: int
    service_name: str
    addresses_health_checkers: list[str] = field(default_factory=list)


def _flatten(data: Mapping[Any, Any], prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in data.items():
        name = f"{prefix}{str(key).lower()}"
        if isinstance(value, Mapping):
            flat.update(_flatten(value, name + "."))
        else:
            flat[name] = value
    return flat


def load_settings(
    config_path: str | os.PathLike = "./config.yaml",
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Read dotted settings from the YAML file, overridden by ``CLI_*`` variables.

    A missing or unreadable file only logs a warning.
    """
    if environ is None:
        environ = os.environ
    settings: dict[str, Any] = {}
    try:
        with open(config_path, encoding="utf-8") as file:
            data = yaml.safe_load(file)
    except (OSError, yaml.YAMLError):
        log.warning(
            "AvgCalculatorConfig | Configuration could not be read from config file. "
            "Using env variables instead"
        )
        data = None
    if isinstance(data, Mapping):
        settings.update(_flatten(data))
    for key in _KEYS:
        value = environ.get(f"{ENV_PREFIX}_{key.upper().replace('.', '_')}")
        if value:
            settings[key] = value
    return settings


def _as_string(value: Any) -> str:
    if value is None or isinstance(value, (list, tuple, dict)):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_uint(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float):
        return int(value) if value > 0 else 0
    if isinstance(value, str) and _UNSIGNED.fullmatch(value.strip()):
        return int(value.strip())
    return 0


def _required(settings: Mapping[str, Any], key: str, what: str) -> str:
    value = _as_string(settings.get(key))
    if not value:
        raise ConfigError(f"missing {what}")
    return value


def get_config(settings: Mapping[str, Any]) -> AvgCalculatorConfig:
    """Validate the settings and build the configuration.

    Raises ConfigError on a missing or invalid value.
    """
    log_level = _as_string(settings.get("log.level"))
    try:
        init_logger(log_level)
    except ValueError as err:
        raise ConfigError(str(err)) from err

    calculator_id = _required(settings, "id", "id")
    input_queue = _required(settings, "rabbitmq.queue.input", "input queue")
    output_queue = _required(settings, "rabbitmq.queue.output", "output queue")
    rabbit_address = _required(settings, "rabbitmq.address", "rabbitmq address")
    savers_count = _as_uint(settings.get("savers.count"))
    if savers_count <= 0:
        raise ConfigError("invalid savers count")
    service_name = _required(settings, "name", "name")
    health_checkers = _required(settings, "healthchecker.addresses", "healthchecker addresses")

    log.info(
        "AvgCalculatorConfig | action: config | result: success | id: %s | log_level: %s | "
        "rabbitAddress: %s | inputQueueName: %s | outputQueueName: %s | saversCount: %s",
        calculator_id,
        log_level,
        rabbit_address,
        input_queue,
        output_queue,
        savers_count,
    )
    return AvgCalculatorConfig(
        id=calculator_id,
        input_queue_name=input_queue,
        output_queue_name=output_queue,
        rabbit_address=rabbit_address,
        savers_count=savers_count,
        service_name=service_name,
        addresses_health_checkers=health_checkers.split(COMMA_SEPARATOR),
    )