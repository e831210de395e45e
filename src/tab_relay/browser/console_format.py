"""Render ``Runtime.RemoteObject`` console arguments as text.

Each argument is classified once into one of a small set of views and every
view knows how to render itself. Object and array views only show what the
protocol put in the preview, never the full object.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Union


@dataclass(frozen=True)
class PreviewProperty:
    name: str
    value: Optional[str]
    type: str = "string"


@dataclass(frozen=True)
class Primitive:
    text: str

    def render(self) -> str:
        return self.text


@dataclass(frozen=True)
class ArrayPreview:
    values: tuple[Optional[str], ...] = ()

    def render(self) -> str:
        items = ",\n    ".join(
            f"{index}: {value if value is not None else 'undefined'}"
            for index, value in enumerate(self.values)
        )
        return f"Array({len(self.values)}) [\n    {items}\n]"


@dataclass(frozen=True)
class ObjectPreview:
    properties: tuple[PreviewProperty, ...] = ()
    description: Optional[str] = None
    has_properties: bool = False

    def render(self) -> str:
        if not self.has_properties:
            return self.description or "Object {}"
        rendered = ", ".join(
            f"{prop.name}: {_render_property_value(prop)}" for prop in self.properties
        )
        return f"Object {{{rendered}}}"


@dataclass(frozen=True)
class ErrorPreview:
    message: Optional[str] = None
    stack: Optional[str] = None
    description: Optional[str] = None
    value: Optional[str] = None

    def render(self) -> str:
        if self.description and "\n" in self.description:
            return self.description
        if self.message and self.stack:
            return f"Error: {self.message}\n{self.stack}"
        return self.description or self.value or "Error"


@dataclass(frozen=True)
class FunctionRef:
    description: Optional[str] = None

    def render(self) -> str:
        return self.description or "function"


ArgumentView = Union[Primitive, ArrayPreview, ObjectPreview, ErrorPreview, FunctionRef]


@dataclass
class _Preview:
    subtype: Optional[str] = None
    description: Optional[str] = None
    properties: Optional[list[PreviewProperty]] = None


def classify(arg: Mapping[str, Any]) -> ArgumentView:
    """Turn one protocol argument into its view."""

    arg_type = arg.get("type")
    subtype = arg.get("subtype")
    preview = _read_preview(arg.get("preview"))

    if subtype == "error":
        listed = preview.properties if preview and preview.properties else []
        props = {prop.name: prop.value for prop in listed}
        return ErrorPreview(
            message=props.get("message") or None,
            stack=props.get("stack") or None,
            description=arg.get("description"),
            value=_text_or_none(arg.get("value")),
        )
    if arg_type == "object" and preview is not None:
        if preview.subtype == "array":
            return ArrayPreview(tuple(prop.value for prop in preview.properties or []))
        return ObjectPreview(
            properties=tuple(preview.properties or ()),
            description=preview.description,
            has_properties=preview.properties is not None,
        )
    if arg_type == "function":
        return FunctionRef(arg.get("description"))
    if arg_type == "undefined":
        return Primitive("undefined")
    if arg_type == "string":
        return Primitive(str(arg.get("value", "")))
    if arg_type in {"number", "boolean", "bigint"}:
        return Primitive(_render_scalar(arg))
    if arg_type == "symbol":
        return Primitive(arg.get("description") or "Symbol()")
    if subtype == "null":
        return Primitive("null")
    return Primitive(_text_or_none(arg.get("value")) or arg.get("description") or "")


def render_arguments(args: Iterable[Mapping[str, Any]]) -> str:
    """Render every argument and join them with single spaces."""

    return " ".join(classify(arg).render() for arg in args)


def _read_preview(raw: Any) -> Optional[_Preview]:
    if not isinstance(raw, Mapping):
        return None
    raw_props = raw.get("properties")
    properties = None
    if isinstance(raw_props, list):
        properties = [
            PreviewProperty(
                name=str(item.get("name", "")),
                value=item.get("value"),
                type=item.get("type", "string"),
            )
            for item in raw_props
            if isinstance(item, Mapping)
        ]
    return _Preview(
        subtype=raw.get("subtype"),
        description=raw.get("description"),
        properties=properties,
    )


def _render_property_value(prop: PreviewProperty) -> str:
    if prop.value is None:
        return "undefined"
    if prop.type == "string":
        return f'"{prop.value}"'
    return prop.value


def _render_scalar(arg: Mapping[str, Any]) -> str:
    unserializable = arg.get("unserializableValue")
    if unserializable is not None:
        return str(unserializable)
    value = arg.get("value")
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _text_or_none(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)
