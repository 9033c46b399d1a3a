"""Runtime settings for the ledger connection and deed package.

Values are layered in this order, later sources winning: defaults, saved
prefs (``StorageLocal``), ``DEEDSYNC_*`` environment variables, CLI flags.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Callable, Dict, Mapping, Optional

from ..adapters.ledger_rpc import DEFAULT_RPC_URL
from ..domain.entities import DeedModule
from ..utils.logging import env_requests_debug

_ENV_KEYS: Dict[str, str] = {
    "DEEDSYNC_RPC_URL": "rpc_url",
    "DEEDSYNC_PACKAGE_ID": "package_id",
    "DEEDSYNC_REQUEST_TIMEOUT_S": "request_timeout_s",
    "DEEDSYNC_SIGN_TIMEOUT_S": "sign_timeout_s",
}
_TRUTHY = {"1", "true", "yes", "on"}
_NO_TIMEOUT = {"", "none", "off", "0"}


@dataclass
class SettingsConfig:
    """Typed runtime settings that persist via StorageLocal."""

    rpc_url: str = DEFAULT_RPC_URL
    package_id: str = ""
    module: str = "deed"
    struct: str = "RealEstateDeed"
    request_timeout_s: int = 10
    retries: int = 2
    page_size: int = 50
    sign_timeout_s: Optional[float] = None


_CONFIG_KEYS = tuple(f.name for f in fields(SettingsConfig))
_EXTRA_KEYS = ("api_key", "debug_logging")


def as_text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def as_count(name: str, value: Any) -> int:
    """Non-negative integer from an int or a digit string."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"{name} must be an integer.")
    try:
        number = int(value.strip()) if isinstance(value, str) else int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer.") from exc
    if number < 0:
        raise ValueError(f"{name} must be non-negative.")
    return number


def as_timeout(value: Any) -> Optional[float]:
    """Seconds as a float; blank, ``off``, zero, or negative mean no timeout."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        if value.strip().lower() in _NO_TIMEOUT:
            return None
        try:
            value = float(value)
        except ValueError as exc:
            raise ValueError("sign_timeout_s must be a number of seconds.") from exc
    seconds = float(value)
    return seconds if seconds > 0 else None


def as_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


_COERCERS: Dict[str, Callable[[Any], Any]] = {
    "rpc_url": as_text,
    "package_id": as_text,
    "module": as_text,
    "struct": as_text,
    "request_timeout_s": lambda v: as_count("request_timeout_s", v),
    "retries": lambda v: as_count("retries", v),
    "page_size": lambda v: as_count("page_size", v),
    "sign_timeout_s": as_timeout,
}


class SettingsVM:
    """Holds settings state and validation; persistence goes through ``on_save``."""

    def __init__(
        self,
        *,
        config: Optional[SettingsConfig] = None,
        on_save: Optional[Callable[[dict], None]] = None,
    ) -> None:
        self.config = config or SettingsConfig()
        self.on_save = on_save
        self.api_key: str = ""
        self.debug_logging: bool = env_requests_debug()

    @property
    def rpc_url(self) -> str:
        return self.config.rpc_url

    @rpc_url.setter
    def rpc_url(self, value: str) -> None:
        self._set("rpc_url", value)

    @property
    def package_id(self) -> str:
        return self.config.package_id

    @package_id.setter
    def package_id(self, value: str) -> None:
        self._set("package_id", value)

    @property
    def request_timeout_s(self) -> int:
        return self.config.request_timeout_s

    @request_timeout_s.setter
    def request_timeout_s(self, value: Any) -> None:
        self._set("request_timeout_s", value)

    @property
    def sign_timeout_s(self) -> Optional[float]:
        return self.config.sign_timeout_s

    @sign_timeout_s.setter
    def sign_timeout_s(self, value: Any) -> None:
        self._set("sign_timeout_s", value)

    @property
    def deed_module(self) -> DeedModule:
        return DeedModule(
            package_id=self.config.package_id,
            module=self.config.module,
            struct=self.config.struct,
        )

    def is_valid(self) -> bool:
        """The RPC URL is http(s) and paging/retry counts are usable."""
        return (
            self.rpc_url.startswith(("http://", "https://"))
            and self.config.page_size > 0
            and self.config.retries >= 0
        )

    def apply_env(self, environ: Optional[Mapping[str, str]] = None) -> None:
        env = os.environ if environ is None else environ
        overrides = {key: env[var] for var, key in _ENV_KEYS.items() if env.get(var)}
        if overrides:
            self.apply_dict(overrides)

    def apply_dict(self, payload: Mapping[str, Any]) -> None:
        """Apply a flat settings mapping; unknown keys are an error and nothing is applied."""
        if not isinstance(payload, Mapping):
            raise ValueError("Settings payload must be a mapping of flat keys.")
        unknown = sorted(str(key) for key in payload if key not in _CONFIG_KEYS + _EXTRA_KEYS)
        if unknown:
            raise ValueError(f"Unsupported settings keys: {', '.join(unknown)}")

        updates = {key: _COERCERS[key](payload[key]) for key in _CONFIG_KEYS if key in payload}
        if updates:
            self.config = replace(self.config, **updates)
        if "api_key" in payload:
            self.api_key = as_text(payload["api_key"])
        if "debug_logging" in payload:
            self.debug_logging = as_flag(payload["debug_logging"])

    def to_dict(self) -> dict:
        return {
            **asdict(self.config),
            "api_key": self.api_key,
            "debug_logging": bool(self.debug_logging),
        }

    def cmd_save(self) -> None:
        if not self.is_valid():
            raise ValueError("Settings invalid")
        if self.on_save:
            self.on_save(self.to_dict())

    def _set(self, key: str, value: Any) -> None:
        self.config = replace(self.config, **{key: _COERCERS[key](value)})
