import logging

from bikemap.filters import FilterSelection
from bikemap.severity import SEVERITY_CATEGORIES, SEVERITY_LABELS
from bikemap.speed import SPEED_BUCKETS, SPEED_LABELS

logger = logging.getLogger(__name__)


class FilterControls:
    """Checkbox state for the speed and severity filters.

    Every toggle is a change event: subscribers are called synchronously with
    the new selection, even when the checkbox already had the requested state.
    """

    def __init__(self, speeds=(), severities=()):
        self.selection = FilterSelection(frozenset(speeds), frozenset(severities))
        self._listeners = []

    def subscribe(self, callback):
        self._listeners.append(callback)
        return callback

    def _changed(self):
        for callback in self._listeners:
            callback(self.selection)

    def toggle_speed(self, bucket: str, checked: bool = True):
        logger.debug(f"Speed checkbox {bucket} -> {checked}")
        self.selection = self.selection.with_speed(bucket, checked)
        self._changed()

    def toggle_severity(self, category: str, checked: bool = True):
        logger.debug(f"Severity checkbox {category} -> {checked}")
        self.selection = self.selection.with_severity(category, checked)
        self._changed()


def _checkbox(css_class, value, label, checked):
    state = " checked" if checked else ""
    return (f'<label><input type="checkbox" class="{css_class}" value="{value}"{state} disabled> '
            f'{label}</label><br>')


def filter_panel_html(selection: FilterSelection) -> str:
    """Filter panel for the saved page, showing which checkboxes were on."""
    html = ('<div class="filters" style="position:fixed;top:10px;right:60px;z-index:1000;'
            'background:white;padding:8px 12px;border-radius:4px;'
            'box-shadow:0 1px 4px rgba(0,0,0,0.3);font-size:12px;">')
    html += '<div><strong>Speed limit:</strong><br>'
    for bucket in SPEED_BUCKETS:
        html += _checkbox("speedCheckbox", bucket, SPEED_LABELS[bucket].replace("<", "&lt;"),
                          bucket in selection.speeds)
    html += '</div><div style="margin-top:6px;"><strong>Severity:</strong><br>'
    for category in SEVERITY_CATEGORIES:
        html += _checkbox("graviteCheckbox", category, SEVERITY_LABELS[category],
                          category in selection.severities)
    html += '</div></div>'
    return html
