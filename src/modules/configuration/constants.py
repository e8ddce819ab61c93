"""Setting keys read by the order lifecycle and their fallback values.

Monetary values are in paise, weights in grams.
"""

PACKAGING_WEIGHT_KEY = "default_packaging_weight_grams"
VOLUMETRIC_DIVISOR_KEY = "volumetric_divisor"
WEIGHT_ROUNDING_KEY = "weight_rounding_grams"
SCHOOL_DELIVERY_CHARGE_KEY = "school_delivery_charge"
HOME_DELIVERY_CHARGE_KEY = "home_delivery_charge"

DEFAULTS: dict[str, int] = {
    PACKAGING_WEIGHT_KEY: 50,
    VOLUMETRIC_DIVISOR_KEY: 5000,
    WEIGHT_ROUNDING_KEY: 500,
    SCHOOL_DELIVERY_CHARGE_KEY: 5000,
    HOME_DELIVERY_CHARGE_KEY: 15000,
}

# Keys whose value is used as a divisor/unit and therefore must be positive.
POSITIVE_KEYS = {VOLUMETRIC_DIVISOR_KEY, WEIGHT_ROUNDING_KEY}
