"""
Formatting of amounts as decimal and currency strings using Babel.

"""
import logging
from typing import Optional

from babel import Locale, numbers
from babel.core import UnknownLocaleError

DEFAULT_LOCALE = 'en_US'

CURRENCY_MAP: dict[str, str] = {
    'US': 'USD',
    'GB': 'GBP',
    'DE': 'EUR',
    'FR': 'EUR',
    'ES': 'EUR',
    'IT': 'EUR',
    'NL': 'EUR',
    'JP': 'JPY',
    'CA': 'CAD',
    'AU': 'AUD',
    'IN': 'INR',
    'BR': 'BRL',
    'HU': 'HUF',
    'MX': 'MXN',
}


def get_locale(locale: Optional[str] = None) -> str:
    """Return ``locale`` or the ``metadata.locale`` setting."""
    if locale:
        return locale
    from . import lib
    if not lib.settings:
        return DEFAULT_LOCALE
    return lib.settings.get_section('metadata').get('locale', DEFAULT_LOCALE)


def get_currency_from_locale(locale: str) -> str:
    """
    Retrieve the default currency code based on the locale's territory.

    Args:
        locale (str): Locale string, e.g. 'en_US'.

    Returns:
        str: Currency code such as 'USD'. Defaults to 'USD' if the territory is unknown.
    """
    parts = locale.split('_')
    if len(parts) < 2:
        return 'USD'
    return CURRENCY_MAP.get(parts[1], 'USD')


def format_float(value: float, locale: Optional[str] = None) -> str:
    """
    Format a number as a decimal string with two fraction digits.
    """
    locale = get_locale(locale)
    try:
        return numbers.format_decimal(value, format='#,##0.00', locale=Locale.parse(locale))
    except (UnknownLocaleError, ValueError) as ex:
        logging.debug(f'Could not format "{value}" for locale "{locale}": {ex}')
        return f'{value:.2f}'


def format_currency_value(value: float, locale: Optional[str] = None) -> str:
    """
    Format a number as a currency string using the locale's default currency.

    Args:
        value (float): The amount.
        locale (str, optional): Locale string, e.g. 'fr_FR'. Defaults to the configured locale.

    Returns:
        str: The formatted currency string, e.g. '$150.50'.
    """
    locale = get_locale(locale)
    try:
        currency_code = get_currency_from_locale(locale)
        return numbers.format_currency(value, currency=currency_code, locale=Locale.parse(locale))
    except (UnknownLocaleError, ValueError) as ex:
        logging.debug(f'Could not format currency "{value}" for locale "{locale}": {ex}')
        return f'{value:.2f}'
