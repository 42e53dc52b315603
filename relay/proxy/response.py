"""Status code plus JSON body returned by the pass-through proxies.

A body of None means the upstream sent no content.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ProxyResponse:
    status_code: int
    body: Any = field(default_factory=dict)
