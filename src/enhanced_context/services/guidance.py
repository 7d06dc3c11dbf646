"""Static SDLC and MCP ecosystem guidance, shipped as YAML."""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from ..config import PACKAGE_DATA

GUIDANCE_DIR = PACKAGE_DATA / "guidance"

ECOSYSTEM_SECTIONS = (
    "overview",
    "remote_mcps",
    "local_mcps",
    "all_mcps",
    "authentication",
    "usage_examples",
    "quick_reference",
    "troubleshooting",
    "full",
)


@lru_cache(maxsize=None)
def _load(path: Path) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def sdlc_steps() -> list[dict[str, Any]]:
    """The 13 delivery lifecycle steps, in order."""
    return _load(GUIDANCE_DIR / "sdlc.yaml")["steps"]


def sdlc_guidance(phase: str | None = None) -> dict[str, Any]:
    """Guidance for one lifecycle phase, or an overview of all of them.

    Raises:
        KeyError: If the phase is unknown
    """
    data = _load(GUIDANCE_DIR / "sdlc.yaml")
    phases = data["phases"]
    if phase is None:
        return {
            "phases": list(phases),
            "steps": [
                {"step": s["step"], "name": s["name"], "phase": s["phase"]}
                for s in data["steps"]
            ],
        }
    if phase not in phases:
        raise KeyError(phase)
    return {
        "phase": phase,
        **phases[phase],
        "steps": [s for s in data["steps"] if s["phase"] == phase],
    }


def sdlc_phases() -> list[str]:
    return list(_load(GUIDANCE_DIR / "sdlc.yaml")["phases"])


def render_sdlc_checklist() -> str:
    """Render the lifecycle as a markdown checklist."""
    lines = ["## SDLC Checklist (13 steps)", ""]
    for step in sdlc_steps():
        lines.append(f"### Step {step['step']}: {step['name']}")
        lines.append(step["description"])
        lines.extend(f"- [ ] {check}" for check in step["checks"])
        lines.append("")
    return "\n".join(lines)


def ecosystem_guide(section: str = "full", mcp_name: str | None = None) -> dict[str, Any]:
    """Describe the MCP servers in the ecosystem.

    Args:
        section: One of ECOSYSTEM_SECTIONS (unknown values return everything)
        mcp_name: Case-insensitive substring of a server name
    """
    data = _load(GUIDANCE_DIR / "ecosystem.yaml")
    remote = data["servers"]["remote"]
    local = data["servers"]["local"]

    if mcp_name:
        needle = mcp_name.lower()
        for server in remote + local:
            if needle in server["name"].lower():
                tip = (
                    f"This MCP requires authentication. {server['auth_type']}"
                    if server.get("auth_required")
                    else "This MCP does not require authentication."
                )
                return {"mcp": server, "usage_tip": tip}
        names = ", ".join(s["name"] for s in remote + local)
        return {"error": f'MCP "{mcp_name}" not found. Available MCPs: {names}'}

    if section == "overview":
        return {
            **data["overview"],
            "total_mcps": len(remote) + len(local),
            "remote_count": len(remote),
            "local_count": len(local),
        }
    if section == "remote_mcps":
        return {"deployment": "Remote", "mcps": remote}
    if section == "local_mcps":
        return {"deployment": "Local", "mcps": local}
    if section == "all_mcps":
        return {"remote": remote, "local": local, "total": len(remote) + len(local)}
    if section == "authentication":
        return {
            "flow": data["overview"]["authentication_flow"],
            "example": data["usage_examples"]["json_rpc_call"],
        }
    if section in ("usage_examples", "quick_reference", "troubleshooting"):
        return {section: data[section]}

    return {
        **data,
        "summary": {
            "total_mcps": len(remote) + len(local),
            "remote": [s["name"] for s in remote],
            "local": [s["name"] for s in local],
        },
    }
