from django import template
from django.utils.html import format_html, format_html_join
from django.utils.safestring import SafeString

from members.comparison import ComparisonSection, PresentedChange
from members.field_specs import ValueType

register = template.Library()


def _value_cell(display: str, *, is_unset: bool, value_type: ValueType) -> SafeString:
    if is_unset:
        return format_html('<td class="value-unset"><em>{}</em></td>', display)
    if value_type == ValueType.badge:
        return format_html('<td><span class="badge badge-secondary">{}</span></td>', display)
    return format_html("<td>{}</td>", display)


def _change_row(change: PresentedChange) -> tuple[SafeString, SafeString, SafeString]:
    return (
        format_html("<th scope=\"row\">{}</th>", change.label),
        _value_cell(change.old_display, is_unset=change.old_is_unset, value_type=change.value_type),
        _value_cell(change.new_display, is_unset=change.new_is_unset, value_type=change.value_type),
    )


@register.simple_tag(name="comparison_section")
def comparison_section(section: ComparisonSection) -> SafeString:
    """Render one comparison section as a current-vs-submitted table."""

    rows = format_html_join(
        "\n",
        "<tr data-field=\"{}\">{}{}{}</tr>",
        ((change.field, *_change_row(change)) for change in section.changes),
    )
    return format_html(
        '<section class="comparison-section" data-category="{}">'
        "<h3>{}</h3>"
        '<table class="table table-sm">'
        "<thead><tr><th>Field</th><th>Current</th><th>Submitted</th></tr></thead>"
        "<tbody>{}</tbody>"
        "</table>"
        "</section>",
        section.category,
        section.header,
        rows,
    )
