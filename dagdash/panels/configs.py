"""Config panel: the configured Airflow servers."""

from __future__ import annotations

from ..commands import OpenItem
from ..config import ServerConfig
from ..events import Key
from ..view import TableRow
from .base import TABLE_COMMANDS, NavContext, PanelOutcome, TablePanel


class ConfigPanel(TablePanel[ServerConfig]):
    name = "config"
    title = "Servers"
    help = "Enter select  o open  / filter  j/k move"
    commands = (
        ("Enter", "Select", "Connect to the server"),
        ("o", "Open", "Open the server in the browser"),
    ) + TABLE_COMMANDS
    entity_type = ServerConfig
    columns = ("Name", "Endpoint", "Version", "Auth")

    def __init__(self, servers: list[ServerConfig], refresh_ticks: int = 10) -> None:
        super().__init__(refresh_ticks)
        self.set_items(servers)
        self.table.filter.set_field_values("endpoint", [s.endpoint for s in servers])

    @staticmethod
    def item_key(item: ServerConfig) -> str:
        return item.name

    def handle_action(self, key: Key, nav: NavContext) -> PanelOutcome:
        server = self.current()
        if key.is_char("o") and server is not None:
            return PanelOutcome.consumed([OpenItem(server=server.name, url=server.endpoint)])
        return PanelOutcome.passed(key)

    def row(self, item: ServerConfig) -> TableRow:
        auth = type(item.auth).__name__.replace("Auth", "").lower() if item.auth else "none"
        return TableRow((item.name, item.endpoint, item.version, auth))
