from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Protocol

from domain.config import DeploymentConfig

# flat (environment style) key -> key inside the nested ports block
_FLAT_PORT_KEYS = {"api_port": "api", "vpn_port": "vpn"}


class ConfigSourcePort(Protocol):
    def get(self) -> Dict[str, Any]:
        ...


def _nested_ports(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Fold api_port / vpn_port into ports; a flat key beats the same layer's ports block."""
    result = {k: v for k, v in values.items() if k not in _FLAT_PORT_KEYS}
    ports = dict(values.get("ports") or {})
    for flat, nested in _FLAT_PORT_KEYS.items():
        if flat in values:
            ports[nested] = values[flat]
    if ports:
        result["ports"] = ports
    return result


@dataclass(frozen=True)
class LayeredConfigSource:
    """Later sources override earlier ones, key by key (ports port by port)."""

    sources: List[ConfigSourcePort]

    def get(self) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for source in self.sources:
            layer = _nested_ports(source.get())
            if "ports" in layer:
                layer["ports"] = {**merged.get("ports", {}), **layer["ports"]}
            merged.update(layer)
        return merged

    def load(self) -> DeploymentConfig:
        return DeploymentConfig.from_mapping(self.get())
