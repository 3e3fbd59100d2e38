"""
Kompo: server-rendered komposers (Form, Query, Menu) dispatched over AJAX.
"""

from kompo.komponents import (
    Button,
    Checkbox,
    Columns,
    Dropdown,
    Field,
    Hidden,
    Input,
    Link,
    MultiSelect,
    Rows,
    Select,
    Textarea,
)
from kompo.komposers import Form, Menu, Query
from kompo.records import Record

__all__ = [
    "Button",
    "Checkbox",
    "Columns",
    "Dropdown",
    "Field",
    "Form",
    "Hidden",
    "Input",
    "Link",
    "Menu",
    "MultiSelect",
    "Query",
    "Record",
    "Rows",
    "Select",
    "Textarea",
]
