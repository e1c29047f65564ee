"""
Output parsing — pull structured values out of CLI output.

Every function takes raw text and returns fields (or None / empty
lists when the text does not contain them). The flow engine itself
never looks at command output; only scenario actions call these.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_CORE_HOST = re.compile(r"Core Hosts:.*?([\d.]+)\s", re.S | re.I)
_API_PORT = re.compile(r"tsuru_tsuru.*?\|\s(\d+)", re.S | re.I)
_NODE_URL = re.compile(r"\| (https?[^\s]+?) \|")
_USERNAME = re.compile(r"Username: ([^\r\n]+)")
_PASSWORD = re.compile(r"Password: ([^\r\n]+)")
_CREATED_NODE = re.compile(r"node\.create.*?node:\s+(.*?)\s+", re.S)
_TABLE_ADDRESS = re.compile(
    r"^ *\| *((?:https?://)?\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}(?::\d+)?) *\|",
    re.M,
)


@dataclass
class InstallInfo:
    """What an installation run reports about the new platform."""

    target_host: str = ""
    target_port: str = ""
    node_urls: list[str] = field(default_factory=list)
    username: str = ""
    password: str = ""

    @property
    def target_address(self) -> str:
        if not self.target_host or not self.target_port:
            return ""
        return f"http://{self.target_host}:{self.target_port}"


def parse_install_output(text: str) -> InstallInfo:
    """Parse the summary printed at the end of an installation."""
    info = InstallInfo()
    if m := _CORE_HOST.search(text):
        info.target_host = m.group(1)
    if m := _API_PORT.search(text):
        info.target_port = m.group(1)
    info.node_urls = _NODE_URL.findall(text)
    if m := _USERNAME.search(text):
        info.username = m.group(1).strip()
    if m := _PASSWORD.search(text):
        info.password = m.group(1).strip()
    return info


def parse_created_node(text: str) -> str | None:
    """Address of the node named by the first ``node.create`` event."""
    m = _CREATED_NODE.search(text)
    return m.group(1) if m else None


def node_updated(text: str, address: str) -> bool:
    """Whether an event listing mentions a ``node.update`` of ``address``."""
    return re.search(r"node\.update.*?node:\s+" + re.escape(address), text, re.S) is not None


def node_ready(text: str, address: str, marker: str = "ready") -> bool:
    """Whether a node listing shows ``address`` followed by ``marker``."""
    return re.search(re.escape(address) + r".*?" + marker, text) is not None


def parse_table_addresses(text: str) -> list[str]:
    """IP addresses (optionally with scheme/port) in the first table column."""
    return [addr for addr in _TABLE_ADDRESS.findall(text) if addr]


def parse_field(text: str, label: str) -> str | None:
    """Value of a ``Label: value`` line, e.g. ``Platform`` or ``Address``."""
    m = re.search(rf"{re.escape(label)}: (.*?)\n", text, re.S)
    return m.group(1) if m else None
