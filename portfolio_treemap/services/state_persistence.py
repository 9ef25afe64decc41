from __future__ import annotations

from typing import Sequence

from portfolio_treemap.schemas.holding import Holding
from portfolio_treemap.services import state_codec
from portfolio_treemap.services.location import Location

INDEX_SENTINEL = "index.html"


class StatePersistence:
    """Reads holdings out of the page address and writes them back in place."""

    def __init__(
        self,
        location: Location,
        *,
        base_path: str = "/portfolio-treemap/",
        query_param: str = "p",
    ) -> None:
        self.location = location
        self.base_path = base_path
        self.query_param = query_param

    def read(self) -> list[Holding] | None:
        # static-hosting 404 fallback redirects here with the token in ?p=
        carried = self.location.query_param(self.query_param)
        if carried:
            decoded = state_codec.decode(carried)
            if decoded is not None:
                self.location.replace_state(f"{self.base_path}{state_codec.encode(decoded)}")
                print(
                    f"[STATE][read] source=query holdings={len(decoded)} canonicalized=1",
                    flush=True,
                )
                return decoded

        path = self.location.pathname
        if not path.startswith(self.base_path):
            return None

        token = path[len(self.base_path):]
        if not token or token == INDEX_SENTINEL:
            return None

        decoded = state_codec.decode(token)
        print(
            f"[STATE][read] source=path holdings={len(decoded) if decoded is not None else 'none'}",
            flush=True,
        )
        return decoded

    def write(self, holdings: Sequence[Holding]) -> None:
        if not holdings:
            self.location.replace_state(self.base_path)
            return
        self.location.replace_state(f"{self.base_path}{state_codec.encode(holdings)}")
