"""Variable profile: one organisational identity's substitution values."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict

_WS = re.compile(r"\s+")


def normalize_variable_key(raw: str) -> str:
    """'company name ' -> 'COMPANY_NAME'."""
    return _WS.sub("_", (raw or "").strip()).upper()


@dataclass
class VariableProfile:
    id: str
    name: str
    variables: Dict[str, str] = field(default_factory=dict)

    def copy(self) -> "VariableProfile":
        return VariableProfile(id=self.id, name=self.name, variables=dict(self.variables))
