from __future__ import annotations

import copy
import uuid
from typing import Any, Dict, List, Optional

from form_canvas.schemas.nodes import FIELD_KINDS, ComponentNode, normalize_kind

DEFAULT_LABELS: Dict[str, str] = {
    "text_input": "Text Input",
    "email_input": "Email Address",
    "number_input": "Number",
    "textarea": "Text Area",
    "select": "Select",
    "radio_group": "Radio Group",
    "checkbox": "Checkbox",
    "date_picker": "Date",
    "file_upload": "File Upload",
    "horizontal_layout": "Horizontal Layout",
    "vertical_layout": "Vertical Layout",
    "button": "Button",
    "heading": "Heading",
    "paragraph": "Paragraph",
    "divider": "Divider",
    "section_divider": "Section Divider",
}

DEFAULT_PLACEHOLDERS: Dict[str, str] = {
    "text_input": "Enter text here...",
    "email_input": "Enter email address...",
    "number_input": "Enter number...",
    "textarea": "Enter text here...",
    "date_picker": "Select date...",
}

CATEGORIES: Dict[str, List[str]] = {
    "input": ["text_input", "email_input", "number_input", "textarea", "date_picker", "file_upload"],
    "selection": ["select", "radio_group", "checkbox"],
    "layout": ["horizontal_layout", "vertical_layout"],
    "content": ["heading", "paragraph", "button", "divider", "section_divider"],
}

_EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


def generate_id(prefix: str = "comp") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:9]}"


def palette_catalog() -> List[Dict[str, Any]]:
    """Palette entries grouped by category. Layout entries are listed but rejected on drop."""
    out: List[Dict[str, Any]] = []
    for category, kinds in CATEGORIES.items():
        for kind in kinds:
            out.append(
                {
                    "kind": kind,
                    "label": DEFAULT_LABELS[kind],
                    "category": category,
                    "placeable": category != "layout",
                }
            )
    return out


def _default_properties(kind: str) -> Dict[str, Any]:
    props: Dict[str, Any] = {}
    placeholder = DEFAULT_PLACEHOLDERS.get(kind)
    if placeholder:
        props["placeholder"] = placeholder
    if kind == "number_input":
        props["step"] = 1
    elif kind == "textarea":
        props["rows"] = 4
    elif kind == "select":
        props["options"] = [
            {"label": "Option 1", "value": "option1"},
            {"label": "Option 2", "value": "option2"},
            {"label": "Option 3", "value": "option3"},
        ]
    elif kind == "radio_group":
        props["options"] = [
            {"label": "Option 1", "value": "option1"},
            {"label": "Option 2", "value": "option2"},
        ]
    elif kind == "file_upload":
        props["accept"] = "*/*"
        props["multiple"] = False
    elif kind == "button":
        props["variant"] = "primary"
        props["size"] = "md"
    elif kind == "heading":
        props["level"] = 2
        props["content"] = "Heading Text"
    elif kind == "paragraph":
        props["content"] = "Paragraph text goes here..."
    elif kind == "section_divider":
        props["content"] = "Section Title"
    return props


def _default_validation(kind: str) -> List[Dict[str, Any]]:
    if kind == "email_input":
        return [{"type": "pattern", "value": _EMAIL_PATTERN, "message": "Please enter a valid email address"}]
    return []


def create_component(
    kind: str,
    initial_properties: Optional[Dict[str, Any]] = None,
    *,
    node_id: Optional[str] = None,
) -> ComponentNode:
    """
    Build a component with per-kind defaults.

    `initial_properties` may override `label`, `fieldId`/`field_id`,
    `required` and `validation`; any other key lands in the property bag.
    Raises ValueError for meta-layouts and unknown kinds.
    """
    k = normalize_kind(kind)
    if k not in FIELD_KINDS:
        raise ValueError(f"{kind!r} is not a placeable component kind")

    extra = copy.deepcopy(dict(initial_properties or {}))
    label = extra.pop("label", None) or DEFAULT_LABELS[k]
    alias_field_id = extra.pop("fieldId", None)
    field_id = alias_field_id or extra.pop("field_id", None) or generate_id("field")
    extra.pop("field_id", None)
    required = extra.pop("required", False)
    validation = extra.pop("validation", None)
    if validation is None:
        validation = _default_validation(k)

    props = _default_properties(k)
    props.update(extra)
    return ComponentNode(
        node_id=node_id or generate_id("comp"),
        kind=k,  # type: ignore[arg-type]
        label=str(label),
        field_id=str(field_id),
        required=required,  # the model parses "false"/"true"; anything else raises
        validation=validation,
        properties=props,
    )


def clone_component(node: ComponentNode) -> ComponentNode:
    """Copy of `node` with fresh node and field ids and a "(Copy)" label suffix."""
    return node.model_copy(
        deep=True,
        update={
            "node_id": generate_id("comp"),
            "field_id": generate_id("field"),
            "label": f"{node.label} (Copy)" if node.label else "",
        },
    )
