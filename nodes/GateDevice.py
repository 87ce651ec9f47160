"""
remote-gateway-pg3x NodeServer/Plugin for EISY/Polisy

(C) 2025

GateDevice

Immutable device configuration shared by the gate and switch nodes.
Runtime state lives in the node (see GateState), never here.
"""

# std libraries
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

# external libraries
from udi_interface import LOGGER

# constants
METHOD_GET = "GET"
METHOD_POST = "POST"
TRIGGER_METHODS = (METHOD_GET, METHOD_POST)

# config key, then legacy aliases
CONFIG_ALIASES = {
    "display_name": ("displayName", "name"),
    "trigger_url": ("triggerUrl", "switchUrl"),
    "trigger_method": ("triggerMethod", "switchReqType"),
    "trigger_payload": ("triggerPayload", "switchMessage"),
}


def _first(dev: Dict[str, Any], field: str) -> Optional[Any]:
    for name in CONFIG_ALIASES[field]:
        if dev.get(name) is not None:
            return dev[name]
    return None


@dataclass(frozen=True)
class GateDevice:
    """Configuration of one gate or switch accessory."""
    key: str
    display_name: str
    device_type: str
    trigger_url: Optional[str] = None
    trigger_method: str = METHOD_GET
    trigger_payload: Optional[str] = None

    @classmethod
    def from_config(cls, dev: Dict[str, Any]) -> "GateDevice":
        """Builds a GateDevice from a devfile/devlist entry.

        Args:
            dev: Device dictionary, must contain 'key' and 'type'.

        Raises:
            KeyError: if 'key' or 'type' is missing.
        """
        key = str(dev["key"])
        device_type = dev["type"]
        method = str(_first(dev, "trigger_method") or METHOD_GET).upper()
        if method not in TRIGGER_METHODS:
            LOGGER.warning(f"{key}: unsupported trigger method {method}, using {METHOD_GET}")
            method = METHOD_GET
        payload = _first(dev, "trigger_payload")
        return cls(
            key=key,
            display_name=str(_first(dev, "display_name") or key),
            device_type=device_type,
            trigger_url=_first(dev, "trigger_url"),
            trigger_method=method,
            trigger_payload=payload if payload is None or isinstance(payload, str) else json.dumps(payload),
        )
