"""
Shared constants and small formatting helpers.
"""

from uuid import uuid4


DEFAULT_CATEGORY = "others"
DEFAULT_SUBSCRIPTION_CATEGORY = "subscriptions"
DELETED_CARD_LABEL = "Deleted card"

CARD_COLORS = [
    {"name": "Obsidian Black", "value": "bg-slate-900"},
    {"name": "Royal Blue", "value": "bg-blue-600"},
    {"name": "Mystic Purple", "value": "bg-purple-600"},
    {"name": "Emerald Green", "value": "bg-emerald-600"},
    {"name": "Crimson Red", "value": "bg-red-600"},
    {"name": "Sunset Orange", "value": "bg-orange-500"},
    {"name": "Hot Pink", "value": "bg-pink-500"},
    {"name": "Gold", "value": "bg-yellow-600"},
]

DEFAULT_CARD_COLOR = CARD_COLORS[0]["value"]

# Typical descriptions offered when the user picks a category
CATEGORY_SUGGESTIONS: dict[str, list[str]] = {
    "food": ["Supermarket", "Farmers market", "Restaurant", "Coffee shop", "Food delivery", "Work lunch"],
    "transport": ["Fuel", "Tolls", "Ride hailing", "Parking", "Metro card top-up", "Car maintenance"],
    "entertainment": ["Cinema", "Event tickets", "Bar / Pub", "Board games", "Hobby"],
    "bills": ["Electricity", "Water", "Gas", "Building fees", "Home internet", "Phone plan"],
    "shopping": ["Clothes", "Shoes", "Toiletries", "Home decor", "Pharmacy"],
    "health": ["Doctor visit", "Pharmacy", "Dentist", "Lab tests", "Therapy"],
    "education": ["Tuition", "Online course", "Books / Stationery", "Certification"],
    "travel": ["Flight / Bus ticket", "Lodging", "Food while travelling", "Souvenirs"],
    "pets": ["Pet food", "Vet check-up", "Vaccines", "Pet grooming"],
    "gym": ["Gym membership", "Supplements", "Sportswear"],
    "gifts": ["Birthday gift", "Wedding gift", "Special treat"],
    "subscriptions": ["Netflix", "Spotify", "Disney+", "Cloud storage", "Amazon Prime", "YouTube Premium"],
    "salary": ["Monthly salary", "Performance bonus", "Holiday bonus", "Freelance payment"],
    "others": ["Miscellaneous", "Unexpected expense", "Loan to a friend", "Bank fee"],
}

MONTH_NAMES: dict[str, list[str]] = {
    "es": [
        "enero", "febrero", "marzo", "abril", "mayo", "junio",
        "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
    ],
    "en": [
        "january", "february", "march", "april", "may", "june",
        "july", "august", "september", "october", "november", "december",
    ],
}

LANGUAGE_NAMES = {"es": "Spanish", "en": "English"}

BILL_PAYMENT_DESCRIPTION = {
    "es": "Pago Facturación {month}",
    "en": "Bill payment {month}",
}


def new_id() -> str:
    """Generate a collision-resistant identifier for a new entity."""
    return str(uuid4())


def month_name(month: int, language: str = "es") -> str:
    """Localized, capitalized month name (month is 1-12)."""
    names = MONTH_NAMES.get(language, MONTH_NAMES["en"])
    name = names[month - 1]
    return name[:1].upper() + name[1:]


def format_amount(amount: int, currency: str = "CLP") -> str:
    """
    Format an amount for display.

    CLP has no minor unit and groups thousands with dots ($150.000);
    USD uses commas ($150,000).
    """
    sign = "-" if amount < 0 else ""
    grouped = f"{abs(int(amount)):,}"
    if currency == "CLP":
        grouped = grouped.replace(",", ".")
    return f"{sign}${grouped}"
