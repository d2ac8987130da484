"""Dashboard panels, in navigation order."""

from .base import FilterableTable, NavContext, Panel, PanelOutcome, TablePanel
from .configs import ConfigPanel
from .dagruns import DagRunPanel
from .dags import DagPanel
from .logs import LogPanel
from .popups import CodePopup, ConfirmPopup, DateFilterPopup, ErrorPopup, HelpPopup, MarkPopup, Popup
from .taskinstances import TaskInstancePanel

__all__ = [
    "CodePopup",
    "ConfigPanel",
    "ConfirmPopup",
    "DagPanel",
    "DagRunPanel",
    "DateFilterPopup",
    "ErrorPopup",
    "FilterableTable",
    "HelpPopup",
    "LogPanel",
    "MarkPopup",
    "NavContext",
    "Panel",
    "PanelOutcome",
    "Popup",
    "TablePanel",
    "TaskInstancePanel",
]
