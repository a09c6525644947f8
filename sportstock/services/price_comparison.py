from urllib.parse import quote_plus

import requests
from flask import current_app

DEFAULT_LOCATION = 'Россия'

MARKETPLACES = [
    ('Яндекс.Маркет', 'https://market.yandex.ru/search?text={q}'),
    ('Ozon', 'https://www.ozon.ru/search/?text={q}'),
    ('Wildberries', 'https://www.wildberries.ru/catalog/0/search.aspx?search={q}'),
    ('Avito', 'https://www.avito.ru/all?q={q}'),
]


def get_user_location(url=None, timeout=5):
    """Approximate location as ``(region, country)``; None when the lookup fails."""
    url = url if url is not None else current_app.config.get('PRICE_LOCATION_URL')
    if not url:
        return None
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except (requests.exceptions.RequestException, ValueError) as exc:
        current_app.logger.warning("Location lookup failed: %s", exc)
        return None
    region, country = data.get('region'), data.get('country_name')
    if not country:
        return None
    return region, country


def find_best_price(query, location=None):
    """Search links on the main marketplaces for ``query``.

    Prices are not scraped; each result is a link the user follows to check it.
    """
    if location is None:
        location = get_user_location()
    location_label = f'{location[0]}, {location[1]}' if location else DEFAULT_LOCATION
    encoded = quote_plus(query or '')
    return [{
        'seller': seller,
        'url': template.format(q=encoded),
        'price': 0,
        'total_price': 0,
        'availability': 'Search results',
        'location': location_label,
    } for seller, template in MARKETPLACES]
