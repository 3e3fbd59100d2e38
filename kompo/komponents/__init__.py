"""
Komponents: the building blocks placed inside komposers.
"""

from kompo.komponents.field import Field, FieldHooks
from kompo.komponents.fields import Checkbox, Hidden, Input, MultiSelect, Select, Textarea
from kompo.komponents.interaction import ActionSpec, Interaction
from kompo.komponents.komponent import Button, Columns, Dropdown, Komponent, Link, Rows

__all__ = [
    "ActionSpec",
    "Button",
    "Checkbox",
    "Columns",
    "Dropdown",
    "Field",
    "FieldHooks",
    "Hidden",
    "Input",
    "Interaction",
    "Komponent",
    "Link",
    "MultiSelect",
    "Rows",
    "Select",
    "Textarea",
]
