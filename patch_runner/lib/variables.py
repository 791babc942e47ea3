from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Mapping

from ..errors import PlaceholderUnresolved

# Any brace pair counts as a placeholder, so malformed tokens such as "{}" or
# "{ exedir }" fail instead of reaching the command line.
_PLACEHOLDER = re.compile(r"\{([^{}]*)\}")

ONLINE = "online"
OFFLINE = "offline"


@dataclass(frozen=True)
class VariableContext:
    exedir: str
    installdir: str
    secret: str
    lockfile: str
    network_status: str

    def as_mapping(self) -> Dict[str, str]:
        return {
            "exedir": self.exedir,
            "installdir": self.installdir,
            "secret": self.secret,
            "lockfile": self.lockfile,
            "network-status": self.network_status,
        }


def resolve(template: str, context: Mapping[str, str] | VariableContext) -> str:
    """Substitute every {name} in template from context.

    Substitution is a single pass over the template: values are never
    rescanned, so a value containing braces is inserted verbatim.
    """

    values = context.as_mapping() if isinstance(context, VariableContext) else context

    def _sub(m: re.Match[str]) -> str:
        name = m.group(1)
        if name not in values:
            raise PlaceholderUnresolved(name, template)
        return values[name]

    return _PLACEHOLDER.sub(_sub, template)


def placeholders(template: str) -> list[str]:
    return [m.group(1) for m in _PLACEHOLDER.finditer(template)]
