from dataclasses import dataclass
from typing import Any, Optional


@dataclass(slots=True)
class Token:
    """The reusable marker that carries a unit of data between cells.

    ``holder`` is the transfer currently leasing the token; it is only used to
    warn when two choreographies try to move the same token at once.
    """

    name: str
    holder: Optional[Any] = None
