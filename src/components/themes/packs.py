"""
Built-in theme packs.

Each pack only lists the tokens it changes; everything else falls back to
the arctic-default values on ThemeTokens.
"""

from __future__ import annotations

from src.components.settings.models import DEFAULT_THEME_ID
from src.components.themes.models import ThemePack, ThemeTokens

__all__ = ["BUILT_IN_THEMES", "DEFAULT_THEME_ID"]


def _pack(
    theme_id: str, name: str, description: str, tokens: dict, variants: dict[str, str] | None = None
) -> ThemePack:
    return ThemePack(
        id=theme_id,
        name=name,
        description=description,
        tokens=ThemeTokens.model_validate(tokens),
        component_variants=variants or {},
        built_in=True,
    )


BUILT_IN_THEMES: dict[str, ThemePack] = {
    pack.id: pack
    for pack in (
        _pack("arctic-default", "Arctic Default", "Deep navy with ice-blue accents", {}),
        _pack(
            "performance-tech",
            "Performance Tech",
            "High-contrast athletic look",
            {
                "colors": {
                    "colorBg": "#050505",
                    "colorSurface": "#111111",
                    "colorSurfaceAlt": "#1a1a1a",
                    "colorPrimary": "#ff3d00",
                    "colorPrimaryText": "#ffffff",
                    "colorAccent": "#00e5ff",
                },
                "typography": {"fontHeading": "Oswald, Impact, sans-serif"},
                "buttons": {"buttonRadius": "sm"},
            },
            {"hero": "split", "productGrid": "cards"},
        ),
        _pack(
            "spa-minimal",
            "Spa Minimal",
            "Warm neutrals and soft shapes",
            {
                "colors": {
                    "colorBg": "#faf7f2",
                    "colorSurface": "#ffffff",
                    "colorSurfaceAlt": "#f2ede4",
                    "colorText": "#3b3128",
                    "colorTextMuted": "#7a6d60",
                    "colorBorder": "#e7dfd3",
                    "colorPrimary": "#a47e5a",
                    "colorPrimaryText": "#ffffff",
                    "colorAccent": "#c9b79c",
                },
                "typography": {"fontHeading": "'Cormorant Garamond', Georgia, serif"},
                "buttons": {"buttonRadius": "pill", "buttonStyle": "soft"},
            },
        ),
        _pack(
            "clinical-clean",
            "Clinical Clean",
            "Bright white with medical blue",
            {
                "colors": {
                    "colorBg": "#ffffff",
                    "colorSurface": "#f8fafc",
                    "colorSurfaceAlt": "#eef2f7",
                    "colorText": "#0f172a",
                    "colorTextMuted": "#64748b",
                    "colorBorder": "#e2e8f0",
                    "colorPrimary": "#2563eb",
                    "colorPrimaryText": "#ffffff",
                    "colorAccent": "#0ea5e9",
                },
                "buttons": {"buttonRadius": "md", "buttonStyle": "outline"},
            },
        ),
        _pack(
            "luxury-wellness",
            "Luxury Wellness",
            "Black and gold, generous spacing",
            {
                "colors": {
                    "colorBg": "#0d0d0d",
                    "colorSurface": "#161616",
                    "colorPrimary": "#c9a227",
                    "colorPrimaryText": "#0d0d0d",
                    "colorAccent": "#e8d48b",
                },
                "typography": {
                    "fontHeading": "'Playfair Display', serif",
                    "letterSpacingBase": "0.02em",
                },
                "layout": {"sectionPaddingY": "112px"},
                "buttons": {"buttonRadius": "lg"},
            },
        ),
        _pack(
            "dark-performance",
            "Dark Performance",
            "Charcoal with electric green",
            {
                "colors": {
                    "colorBg": "#0f1115",
                    "colorSurface": "#171a21",
                    "colorSurfaceAlt": "#1f232c",
                    "colorPrimary": "#39ff14",
                    "colorPrimaryText": "#0f1115",
                    "colorAccent": "#14b8a6",
                },
                "spacing": {"spaceBase": 5},
            },
        ),
    )
}
