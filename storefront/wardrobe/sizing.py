"""Shoe size recommendation from the active foot measurement"""
from decimal import ROUND_HALF_UP, Decimal

DEFAULT_FOOT_LENGTH_CM = Decimal('26.0')
CONFIDENCE_WITH_MAPPINGS = 85
CONFIDENCE_WITHOUT_MAPPINGS = 70


def format_size(value):
    value = Decimal(value).normalize()
    return f"{value:f}cm"


def recommend_size(product_name, measurements, mappings):
    """
    Recommend a size one centimetre above the foot length.

    ``measurements`` is any iterable of FootMeasurement; the first active one
    is used. ``mappings`` only affects the confidence score.
    """
    active = next((m for m in measurements if m.is_active), None)
    foot_length = Decimal(active.length_mm) / 10 if active else DEFAULT_FOOT_LENGTH_CM

    # Half-up rounding to a whole centimetre
    recommended = int((foot_length + 1).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
    has_mappings = bool(list(mappings))
    words = product_name.split(' ')

    return {
        'brand_name': words[0] if words and words[0] else 'Unknown',
        'model_name': product_name,
        'recommended_size': f"{recommended}cm",
        'confidence_score': CONFIDENCE_WITH_MAPPINGS if has_mappings else CONFIDENCE_WITHOUT_MAPPINGS,
        'reasoning': f"足長 {foot_length.quantize(Decimal('0.1'))}cm を基に、{recommended}cm をお勧めします。",
        'alternative_sizes': [
            {'size': format_size(recommended - Decimal('0.5')), 'note': '細身の足の場合'},
            {'size': format_size(recommended + Decimal('0.5')), 'note': '幅広の足の場合'},
        ],
    }
