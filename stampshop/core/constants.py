"""Storefront constants."""

CART_STORAGE_KEY = "cart_v1"
CART_EXPIRY_SECONDS = 24 * 60 * 60

CURRENCY_ID = "ARS"

# Flat shipping fee added to the checkout total (ARS)
SHIPPING_COST = 500

DELIVERY_PICKUP = "pickup"
DELIVERY_SHIPPING = "shipping"
DELIVERY_METHODS = (DELIVERY_PICKUP, DELIVERY_SHIPPING)

DEFAULT_CITY = "Mar del Plata"
PICKUP_ADDRESS = "Bermejo 477, Mar del Plata"

ORDER_REFERENCE_PREFIX = "SP"
ORDER_STATUS_CONFIRMED = "Confirmado"

# Telegram hard limit for a single message
MESSAGE_MAX_LENGTH = 4096

HTTP_TIMEOUT_SECONDS = 10

# Stamp kit sizes in cm
LOGO_KITS: dict[str, dict[str, int]] = {
    "Kit 1": {"width": 4, "height": 4},
    "Kit 2": {"width": 10, "height": 6},
    "Kit 3": {"width": 12, "height": 8},
    "Kit 4": {"width": 10, "height": 15},
    "Kit 5": {"width": 15, "height": 9},
    "Kit 6": {"width": 20, "height": 13},
}
DEFAULT_LOGO_KIT = "Kit 1"

FLAVOR_KIT_NAME = "Kit Empanadas"
FLAVOR_KIT_SIZE = {"width": 4, "height": 1}

DEFAULT_MAX_LINES = 4
SCHOOL_DRAWING_MAX = 158
