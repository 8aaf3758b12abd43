"""Customization rules per product kind.

Every product kind owns one schema. A schema fills in the defaults the
personalization form starts from and checks a customization before it goes
into the cart. Validation returns field -> message maps and never raises, so
the messages can be shown next to the form fields.
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from stampshop.core.constants import (
    DEFAULT_LOGO_KIT,
    DEFAULT_MAX_LINES,
    FLAVOR_KIT_NAME,
    FLAVOR_KIT_SIZE,
    LOGO_KITS,
    SCHOOL_DRAWING_MAX,
)
from stampshop.domain.product import Product, ProductKind

HEX_COLOR_RE = re.compile(r"^#([0-9A-F]{3}){1,2}$", re.IGNORECASE)
LINE_KEY_RE = re.compile(r"^line(\d+)$")
LOGO_KEYS = ("logoFile", "logoPreview", "fileName")


def is_hex_color(value: Any) -> bool:
    return bool(HEX_COLOR_RE.match(str(value).strip()))


def _check_font(customization: Mapping[str, Any], errors: dict[str, str]) -> None:
    font = customization.get("Fuente")
    if font and not (isinstance(font, str) and len(font) == 1 and "A" <= font.upper() <= "Z"):
        errors["Fuente"] = "Elegí una fuente entre A y Z"


def _check_color(
    customization: Mapping[str, Any], product: Product, errors: dict[str, str], required: bool = False
) -> None:
    color = customization.get("color")
    if not color:
        if required:
            errors["color"] = "Elegí un color"
        return
    known = {c.hex.lower() for c in product.colors}
    if not is_hex_color(color) and str(color).strip().lower() not in known:
        errors["color"] = "Color inválido"


def _check_flags(customization: Mapping[str, Any], keys: tuple[str, ...], errors: dict[str, str]) -> None:
    for key in keys:
        value = customization.get(key)
        if value is not None and not isinstance(value, bool):
            errors[key] = "Valor inválido"


class CustomizationSchema:
    kind: ProductKind = ProductKind.PLAIN

    def defaults(self, product: Product, customization: Mapping[str, Any]) -> dict[str, Any]:
        return dict(customization)

    def validate(self, customization: Mapping[str, Any], product: Product) -> dict[str, str]:
        return {}


class PlainStampSchema(CustomizationSchema):
    """Text stamp: up to ``max_lines`` lines, font letter, ink color, left-hand flag."""

    kind = ProductKind.PLAIN

    def validate(self, customization, product):
        errors: dict[str, str] = {}
        max_lines = product.max_lines or DEFAULT_MAX_LINES
        for key, value in customization.items():
            match = LINE_KEY_RE.match(key)
            if match and value and int(match.group(1)) > max_lines:
                errors[key] = f"Máximo {max_lines} líneas"
        _check_font(customization, errors)
        _check_color(customization, product, errors)
        _check_flags(customization, ("zurdo",), errors)
        return errors


class LogoKitSchema(CustomizationSchema):
    kind = ProductKind.LOGO_KIT

    def defaults(self, product, customization):
        result = dict(customization)
        if not result.get("selectedKit"):
            result["selectedKit"] = DEFAULT_LOGO_KIT
            result.update(LOGO_KITS[DEFAULT_LOGO_KIT])
        return result

    def validate(self, customization, product):
        errors: dict[str, str] = {}
        kit = customization.get("selectedKit")
        if kit and kit not in LOGO_KITS:
            errors["selectedKit"] = "Kit inexistente"
        if not any(customization.get(key) for key in LOGO_KEYS):
            errors["logo"] = "Por favor, sube un logo antes de cotizar."
        return errors


class SchoolStampSchema(CustomizationSchema):
    """School label stamp: name, drawing number, font and which labels to print."""

    kind = ProductKind.SCHOOL

    def validate(self, customization, product):
        errors: dict[str, str] = {}
        drawing = customization.get("Dibujo")
        if drawing not in (None, ""):
            try:
                number = int(drawing)
            except (TypeError, ValueError):
                number = -1
            if not 0 <= number <= SCHOOL_DRAWING_MAX:
                errors["Dibujo"] = f"El dibujo debe estar entre 0 y {SCHOOL_DRAWING_MAX}"
        _check_font(customization, errors)
        _check_color(customization, product, errors)
        _check_flags(customization, ("Hoja", "Materia", "Año"), errors)
        return errors


class InkSchema(CustomizationSchema):
    kind = ProductKind.INK

    def validate(self, customization, product):
        errors: dict[str, str] = {}
        _check_color(customization, product, errors, required=True)
        return errors


class FlavorKitSchema(CustomizationSchema):
    """Empanada flavor kit: fixed kit size, flavors instead of a logo."""

    kind = ProductKind.FLAVOR_KIT

    def defaults(self, product, customization):
        result = dict(customization)
        if result.get("selectedKit") != FLAVOR_KIT_NAME:
            result.update(
                selectedKit=FLAVOR_KIT_NAME,
                logoFile=None,
                fileName="",
                logoPreview="",
                **FLAVOR_KIT_SIZE,
            )
        return result

    def validate(self, customization, product):
        errors: dict[str, str] = {}
        flavors = customization.get("sabores")
        if not (isinstance(flavors, str) and flavors.strip()):
            errors["sabores"] = "Indicá los sabores de empanadas"
        return errors


SCHEMAS: dict[ProductKind, CustomizationSchema] = {
    schema.kind: schema
    for schema in (
        PlainStampSchema(),
        LogoKitSchema(),
        SchoolStampSchema(),
        InkSchema(),
        FlavorKitSchema(),
    )
}


def schema_for(product: Product) -> CustomizationSchema:
    return SCHEMAS[product.kind]


def apply_defaults(product: Product, customization: Mapping[str, Any] | None = None) -> dict[str, Any]:
    return schema_for(product).defaults(product, customization or {})


def validate_customization(product: Product, customization: Mapping[str, Any] | None) -> dict[str, str]:
    return schema_for(product).validate(customization or {}, product)
