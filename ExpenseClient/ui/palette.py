# via https://www.learnui.design/tools/data-color-picker.html#palette
"""Colour palettes and position-based colour assignment for chart series.

A colour is a pure function of the entry's position in its series, so the
same series always renders with the same colours.
"""
from typing import List, Optional, Sequence

DEFAULT_PALETTE = 'palette1'

PALETTES = {
    'palette1': [
        '#005983',
        '#4d60a1',
        '#935fac',
        '#d1599e',
        '#fe5e7b',
        '#ff7a4c',
        '#ffa600'
    ],
    'palette2': [
        '#c2a957',
        '#d99143',
        '#ee7347',
        '#fd4b5f',
        '#fd0f86',
        '#e300b8',
        '#a136ee'
    ],
    'palette3': [
        '#7b8845',
        '#a7a563',
        '#d3c385',
        '#ffe3aa',
        '#f9ae79',
        '#ef7363',
        '#d92b67'
    ]
}


def get_palette(name: Optional[str] = None) -> List[str]:
    """Return the colours of a named palette.

    Args:
        name: Palette name. Defaults to the ``metadata.palette`` setting, then :data:`DEFAULT_PALETTE`.

    Raises:
        KeyError: If the palette does not exist.
    """
    if name is None:
        from ..settings import lib
        name = lib.settings.get_section('metadata').get('palette', DEFAULT_PALETTE) if lib.settings else DEFAULT_PALETTE

    if name not in PALETTES:
        raise KeyError(f'Unknown palette "{name}", must be one of {list(PALETTES)}')
    return PALETTES[name]


def get_color(position: int, palette: Optional[str] = None) -> str:
    """Return the colour for a series position, wrapping around the palette."""
    if position < 0:
        raise ValueError(f'Position must be non-negative, got {position}')
    colors = get_palette(palette)
    return colors[position % len(colors)]


def assign_colors(series: Sequence, palette: Optional[str] = None) -> List[str]:
    """Return one colour per series entry, in series order."""
    colors = get_palette(palette)
    return [colors[i % len(colors)] for i in range(len(series))]
