"""
Built-in site presets and the home page templates they seed.
"""

from __future__ import annotations

from typing import Any

from src.components.presets.models import HomePageSeedMode, SitePreset
from src.components.settings.models import FooterSettings, GlobalCta, NavSettings, SeoDefaults

HOME_TEMPLATES: dict[str, list[dict[str, Any]]] = {
    "landing-page-v1": [
        {
            "type": "hero",
            "data": {
                "headline": "Recover Faster. Perform Better.",
                "subheadline": "Professional-grade cold plunge tanks for daily recovery.",
                "ctaText": "Shop Now",
                "ctaHref": "/shop",
            },
        },
        {"type": "trustBar", "data": {}},
        {"type": "featureList", "data": {"title": "Why Power Plunge"}},
        {"type": "productGrid", "data": {"title": "Shop the Range", "queryMode": "all"}},
        {"type": "faq", "data": {"title": "Questions, answered"}},
        {
            "type": "callToAction",
            "data": {"headline": "Ready to take the plunge?", "primaryCtaHref": "/shop"},
        },
    ],
    "product-story-v1": [
        {
            "type": "hero",
            "data": {
                "headline": "A Calmer Kind of Cold",
                "layout": "split-left",
                "ctaText": "Explore Products",
                "ctaHref": "/shop",
            },
        },
        {
            "type": "richText",
            "data": {"title": "Our Story", "bodyRichText": "<p>Built for ritual.</p>"},
        },
        {"type": "productHighlight", "data": {}},
        {"type": "testimonials", "data": {"title": "From our community"}},
    ],
    "sales-funnel-v1": [
        {
            "type": "hero",
            "data": {
                "headline": "Cold Plunge. No Excuses.",
                "ctaText": "Buy Now",
                "ctaHref": "/shop",
            },
        },
        {"type": "comparisonTable", "data": {"title": "Pick your plunge"}},
        {"type": "trustBar", "data": {}},
        {
            "type": "callToAction",
            "data": {"headline": "Ships in 48 hours", "primaryCtaHref": "/shop"},
        },
    ],
}


def _nav(style: str, *items: tuple[str, str]) -> NavSettings:
    return NavSettings.model_validate(
        {"style_variant": style, "items": [{"label": label, "href": href} for label, href in items]}
    )


def _footer(columns: dict[str, list[tuple[str, str]]]) -> FooterSettings:
    return FooterSettings.model_validate(
        {
            "columns": [
                {"title": title, "links": [{"label": label, "href": href} for label, href in links]}
                for title, links in columns.items()
            ],
            "show_social": True,
        }
    )


BUILT_IN_PRESETS: dict[str, SitePreset] = {
    preset.id: preset
    for preset in (
        SitePreset(
            id="performance-tech-starter",
            name="Performance Tech Starter",
            description="Bold, high-contrast site with an athletic feel.",
            tags=["starter", "performance", "athletic"],
            theme_id="performance-tech",
            nav=_nav(
                "minimal", ("Home", "/"), ("Shop", "/shop"), ("FAQ", "/faq"), ("Support", "/support")
            ),
            footer=_footer(
                {
                    "Shop": [("Cold Plunge Tanks", "/shop"), ("Accessories", "/shop#accessories")],
                    "Support": [
                        ("FAQ", "/faq"),
                        ("Contact Us", "/support"),
                        ("Warranty", "/warranty"),
                    ],
                    "Company": [("About", "/about"), ("Blog", "/blog")],
                }
            ),
            seo=SeoDefaults(
                site_name="Power Plunge",
                title_suffix=" | Power Plunge",
                default_meta_description="Professional-grade cold plunge tanks for peak recovery.",
            ),
            global_cta=GlobalCta(
                primary_cta_text="Shop Now",
                primary_cta_href="/shop",
                secondary_cta_text="Learn More",
                secondary_cta_href="/about",
            ),
            home_template_id="landing-page-v1",
            home_page_seed_mode=HomePageSeedMode.CREATE_FROM_TEMPLATE,
            built_in=True,
        ),
        SitePreset(
            id="spa-minimal-starter",
            name="Spa Minimal Starter",
            description="Calm, warm neutrals for wellness positioning.",
            tags=["starter", "spa", "wellness", "minimal"],
            theme_id="spa-minimal",
            nav=_nav(
                "centered",
                ("Home", "/"),
                ("Products", "/shop"),
                ("Our Story", "/story"),
                ("Contact", "/contact"),
            ),
            footer=_footer(
                {
                    "Products": [("Cold Plunge", "/shop"), ("Financing", "/financing")],
                    "About": [("Our Story", "/story"), ("Contact", "/contact")],
                }
            ),
            seo=SeoDefaults(
                site_name="Power Plunge",
                title_suffix=" | Power Plunge Wellness",
                default_meta_description="Transform your wellness routine with a premium cold plunge.",
            ),
            global_cta=GlobalCta(
                primary_cta_text="Explore Products",
                primary_cta_href="/shop",
                secondary_cta_text="Our Story",
                secondary_cta_href="/story",
            ),
            home_template_id="product-story-v1",
            home_page_seed_mode=HomePageSeedMode.CREATE_FROM_TEMPLATE,
            built_in=True,
        ),
        SitePreset(
            id="clinical-clean-starter",
            name="Clinical Clean Starter",
            description="Trust-forward design for health-focused messaging.",
            tags=["starter", "clinical", "trust"],
            theme_id="clinical-clean",
            nav=_nav("minimal", ("Home", "/"), ("Shop", "/shop"), ("Research", "/research")),
            seo=SeoDefaults(
                site_name="Power Plunge",
                title_suffix=" | Power Plunge",
                default_meta_description="Evidence-based cold exposure equipment.",
            ),
            home_template_id="landing-page-v1",
            home_page_seed_mode=HomePageSeedMode.APPLY_TO_EXISTING_HOME,
            built_in=True,
        ),
        SitePreset(
            id="dark-performance-starter",
            name="Dark Performance Starter",
            description="Charcoal and electric green, built to convert.",
            tags=["starter", "performance", "sales"],
            theme_id="dark-performance",
            global_cta=GlobalCta(primary_cta_text="Buy Now", primary_cta_href="/shop"),
            home_template_id="sales-funnel-v1",
            home_page_seed_mode=HomePageSeedMode.CREATE_FROM_TEMPLATE,
            built_in=True,
        ),
    )
}
