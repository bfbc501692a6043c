from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from domain.run import RunContext


class TemplateRenderError(Exception):
    pass


@dataclass(frozen=True)
class RenderSources:
    config: Dict[str, Any]
    state: Dict[str, Any]
    env: Mapping[str, str]

    @classmethod
    def from_context(cls, ctx: RunContext, env: Optional[Mapping[str, str]] = None) -> "RenderSources":
        return cls(
            config=ctx.config.as_template_vars(),
            state=ctx.state,
            env=os.environ if env is None else env,
        )


class TemplateRenderer:
    """
    Expands ${config.xxx}, ${state.xxx}, ${env.XXX} in plan fields.
    - dotted lookups: ${config.ports.api}
    - list index: ${state.clients.0}
    - a value made of exactly one template keeps its type (bool, int, dict)
    """

    def render_value(self, s: Any, src: RenderSources) -> Any:
        if not isinstance(s, str):
            return s
        if "${" not in s:
            return s

        if s.startswith("${") and s.endswith("}") and s.count("${") == 1:
            expr = s[2:-1].strip()
            return self._eval(expr, src)

        return self.render_str(s, src)

    def render_str(self, s: Optional[str], src: RenderSources) -> str:
        if s is None:
            return ""
        if "${" not in s:
            return s

        result = ""
        i = 0
        while i < len(s):
            start = s.find("${", i)
            if start < 0:
                result += s[i:]
                break
            result += s[i:start]
            end = s.find("}", start + 2)
            if end < 0:
                raise TemplateRenderError(f"unclosed template: {s}")
            expr = s[start + 2 : end].strip()
            value = self._eval(expr, src)

            if isinstance(value, list):
                value = ",".join("" if x is None else str(x) for x in value)

            result += "" if value is None else str(value)
            i = end + 1

        return result

    def render_args(self, args: Sequence[str], src: RenderSources) -> List[str]:
        return [self.render_str(a, src) for a in args]

    def render_mapping(self, data: Optional[Mapping[str, Any]], src: RenderSources) -> Dict[str, Any]:
        if not data:
            return {}
        return {self.render_str(k, src): self.render_tree(v, src) for k, v in data.items()}

    def render_tree(self, value: Any, src: RenderSources) -> Any:
        """Render every string inside nested dicts/lists (JSON bodies)."""
        if isinstance(value, dict):
            return {k: self.render_tree(v, src) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.render_tree(v, src) for v in value]
        return self.render_value(value, src)

    def is_truthy(self, expr: str, src: RenderSources) -> bool:
        value = self.render_value(expr, src)
        if isinstance(value, bool):
            return value
        text = "" if value is None else str(value).strip()
        return bool(text and text.lower() not in ("false", "0", "no", "off"))

    def _eval(self, expr: str, src: RenderSources) -> Any:
        root_name, rest = self._split_root(expr)

        root = {
            "config": src.config,
            "state": src.state,
            "env": src.env,
        }.get(root_name)

        if root is None:
            raise TemplateRenderError(f"unknown root: {root_name}")

        if rest == "":
            return root

        return self._resolve_path(root, rest)

    def _split_root(self, expr: str) -> Tuple[str, str]:
        if "." in expr:
            a, b = expr.split(".", 1)
            return a, b
        return expr, ""

    def _resolve_path(self, obj: Any, path: str) -> Any:
        cur = obj
        for part in path.split("."):
            cur = self._resolve_part(cur, part)
        return cur

    def _resolve_part(self, cur: Any, part: str) -> Any:
        if part.isdigit():
            idx = int(part)
            if not isinstance(cur, list):
                raise TemplateRenderError(f"index access on non-list: {part}")
            if idx < 0 or idx >= len(cur):
                return ""
            return cur[idx]

        if isinstance(cur, Mapping):
            return cur.get(part, "")
        if hasattr(cur, part):
            return getattr(cur, part)
        return ""
