from django import template
from ..service import category_label as _category_label
from ..service import status_label as _status_label

register = template.Library()


@register.filter
def status_label(value):
    """Status value -> human-readable label, whatever its stored case"""
    return _status_label(value)


@register.filter
def category_label(value):
    return _category_label(value)


@register.filter
def status_css(value):
    return f"status-{_status_label(value).lower().replace(' ', '-')}"
