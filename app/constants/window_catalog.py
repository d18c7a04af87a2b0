# app/constants/window_catalog.py
"""
Fixed product catalog for the window/door configurator.

Keys are the values stored on a WindowSpecification. Lookups that miss the
catalog fall back to neutral values (multiplier 1.0, surcharge 0) instead of
failing.
"""

# =====================================================
# WINDOW TYPES
# =====================================================
WINDOW_TYPES = {
    "sliding": {
        "name": "Sliding Window",
        "description": "Horizontal sliding windows with multiple tracks",
        "default_specs": {"panels": 2, "tracks": 1, "opening_type": "horizontal", "fixed_panels": []},
    },
    "casement": {
        "name": "Casement Window",
        "description": "Side-hinged windows that open outward",
        "default_specs": {"panels": 1, "tracks": 1, "opening_type": "side", "fixed_panels": []},
    },
    "bay": {
        "name": "Bay Window",
        "description": "Protruding windows with multiple angles",
        "default_specs": {"panels": 3, "tracks": 1, "opening_type": "side", "fixed_panels": ["center"]},
    },
    "fixed": {
        "name": "Fixed Window",
        "description": "Non-opening windows for light and view",
        "default_specs": {"panels": 1, "tracks": 0, "opening_type": "none", "fixed_panels": ["all"]},
    },
    "awning": {
        "name": "Awning Window",
        "description": "Top-hinged windows that open outward",
        "default_specs": {"panels": 1, "tracks": 1, "opening_type": "top", "fixed_panels": []},
    },
    "picture": {
        "name": "Picture Window",
        "description": "Large fixed windows for unobstructed views",
        "default_specs": {"panels": 1, "tracks": 0, "opening_type": "none", "fixed_panels": ["all"]},
    },
    "double-hung": {
        "name": "Double Hung Window",
        "description": "Two vertically sliding sashes",
        "default_specs": {"panels": 2, "tracks": 2, "opening_type": "vertical", "fixed_panels": []},
    },
    "single-hung": {
        "name": "Single Hung Window",
        "description": "Bottom sash slides up, top is fixed",
        "default_specs": {"panels": 2, "tracks": 1, "opening_type": "vertical", "fixed_panels": ["top"]},
    },
    "pivot": {
        "name": "Pivot Window",
        "description": "Central pivot rotation mechanism",
        "default_specs": {"panels": 1, "tracks": 1, "opening_type": "pivot", "fixed_panels": []},
    },
    "metal": {
        "name": "Metal Window",
        "description": "Industrial style metal frame windows",
        "default_specs": {"panels": 1, "tracks": 1, "opening_type": "side", "fixed_panels": []},
    },
    "louvered": {
        "name": "Louvered Window",
        "description": "Multiple horizontal slats for ventilation",
        "default_specs": {"panels": 8, "tracks": 1, "opening_type": "slats", "fixed_panels": []},
    },
    "glass-block": {
        "name": "Glass Block Window",
        "description": "Decorative glass blocks for privacy",
        "default_specs": {"panels": 1, "tracks": 0, "opening_type": "none", "fixed_panels": ["all"]},
    },
}

# Spellings found in stored quotations from the browser configurator
WINDOW_TYPE_ALIASES = {
    "doublehung": "double-hung",
    "double_hung": "double-hung",
    "singlehung": "single-hung",
    "single_hung": "single-hung",
    "glassblock": "glass-block",
    "glass_block": "glass-block",
}

# =====================================================
# GLASS (surcharge per sq.ft)
# =====================================================
GLASS_OPTIONS = {
    "clear-5mm": {"label": "5mm Clear Glass", "thickness": 5, "price": 150},
    "clear-6mm": {"label": "6mm Clear Glass", "thickness": 6, "price": 180},
    "clear-8mm": {"label": "8mm Clear Glass", "thickness": 8, "price": 220},
    "toughened-5mm": {"label": "5mm Toughened Glass", "thickness": 5, "price": 200},
    "toughened-6mm": {"label": "6mm Toughened Glass", "thickness": 6, "price": 240},
    "toughened-8mm": {"label": "8mm Toughened Glass", "thickness": 8, "price": 300},
    "laminated-6mm": {"label": "6mm Laminated Glass", "thickness": 6, "price": 350},
    "laminated-8mm": {"label": "8mm Laminated Glass", "thickness": 8, "price": 420},
    "double-glazed": {"label": "Double Glazed Unit", "thickness": 24, "price": 800},
}

# =====================================================
# FRAME MATERIALS (multiplier on base price)
# =====================================================
FRAME_MATERIALS = {
    "aluminum": {"label": "Aluminum", "price_multiplier": 1.0},
    "upvc": {"label": "uPVC", "price_multiplier": 1.2},
    "wooden": {"label": "Wooden", "price_multiplier": 1.8},
    "steel": {"label": "Steel", "price_multiplier": 0.9},
    "composite": {"label": "Composite", "price_multiplier": 1.5},
}

# =====================================================
# LOCKS / COLOURS
# =====================================================
LOCK_OPTIONS = {
    "none": {"label": "No Lock", "position": "none"},
    "left-handle": {"label": "Left Side Handle Lock", "position": "left"},
    "right-handle": {"label": "Right Side Handle Lock", "position": "right"},
    "top-lock": {"label": "Top Lock", "position": "top"},
    "bottom-lock": {"label": "Bottom Lock", "position": "bottom"},
    "multi-point": {"label": "Multi-Point Lock", "position": "multi"},
    "concealed": {"label": "Concealed Lock", "position": "concealed"},
}

COLOR_OPTIONS = {
    "white": {"label": "White", "hex": "#FFFFFF"},
    "black": {"label": "Black", "hex": "#000000"},
    "brown": {"label": "Brown", "hex": "#8B4513"},
    "grey": {"label": "Grey", "hex": "#808080"},
    "green": {"label": "Green", "hex": "#008000"},
    "blue": {"label": "Blue", "hex": "#0000FF"},
    "bronze": {"label": "Bronze", "hex": "#CD7F32"},
    "silver": {"label": "Silver", "hex": "#C0C0C0"},
}

GRILLE_STYLES = ("rectangular", "colonial", "prairie", "georgian")


def resolve_window_type(value) -> str | None:
    """Return the catalog key for ``value`` or None when it is not a known type."""
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    key = WINDOW_TYPE_ALIASES.get(key, key)
    return key if key in WINDOW_TYPES else None


def frame_multiplier(material) -> float:
    option = FRAME_MATERIALS.get(material) if isinstance(material, str) else None
    return option["price_multiplier"] if option else 1.0


def glass_surcharge(glass) -> float:
    option = GLASS_OPTIONS.get(glass) if isinstance(glass, str) else None
    return float(option["price"]) if option else 0.0
