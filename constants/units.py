"""
Unit Constants and Fraction Tables

Contains the unit vocabulary used to split ingredient descriptions and the
fraction tables used to parse and format ingredient amounts.
"""

# Two-word units, checked before single words (lowercase, exact match)
TWO_WORD_UNITS = {
    'fl oz', 'fl. oz', 'fl. oz.', 'fl ozs',
    'fluid ounce', 'fluid ounces',
    'fluid oz',
}

# Single-word units (lowercase, trailing period stripped before lookup)
ONE_WORD_UNITS = {
    'teaspoon', 'teaspoons', 'tsp', 'tsps', 'ts',
    'tablespoon', 'tablespoons', 'tbsp', 'tbsps', 'tbs', 'tb',
    'cup', 'cups',
    'ounce', 'ounces', 'oz',
    'pound', 'pounds', 'lb', 'lbs',
    'gram', 'grams', 'g',
    'kilogram', 'kilograms', 'kg',
    'milligram', 'milligrams', 'mg',
    'milliliter', 'milliliters', 'millilitre', 'millilitres', 'ml',
    'liter', 'liters', 'litre', 'litres', 'l',
    'pint', 'pints', 'pt',
    'quart', 'quarts', 'qt',
    'gallon', 'gallons', 'gal',
    'clove', 'cloves',
    'pinch', 'pinches',
    'dash', 'dashes',
    'can', 'cans',
    'package', 'packages', 'pkg',
    'stick', 'sticks',
    'slice', 'slices',
    'piece', 'pieces',
    'bunch', 'bunches',
    'stalk', 'stalks',
    'sprig', 'sprigs',
    'head', 'heads',
    'handful', 'handfuls',
}

# Denominators tried when formatting an amount as a fraction
FRACTION_DENOMINATORS = (2, 3, 4, 8, 16)

# Unicode vulgar fraction characters mapping (exact rational values)
UNICODE_FRACTIONS = {
    '\u00bd': 1 / 2,   # ½
    '\u2153': 1 / 3,   # ⅓
    '\u2154': 2 / 3,   # ⅔
    '\u00bc': 1 / 4,   # ¼
    '\u00be': 3 / 4,   # ¾
    '\u2155': 1 / 5,   # ⅕
    '\u2156': 2 / 5,   # ⅖
    '\u2157': 3 / 5,   # ⅗
    '\u2158': 4 / 5,   # ⅘
    '\u2159': 1 / 6,   # ⅙
    '\u215a': 5 / 6,   # ⅚
    '\u2150': 1 / 7,   # ⅐
    '\u215b': 1 / 8,   # ⅛
    '\u215c': 3 / 8,   # ⅜
    '\u215d': 5 / 8,   # ⅝
    '\u215e': 7 / 8,   # ⅞
    '\u2151': 1 / 9,   # ⅑
    '\u2152': 1 / 10,  # ⅒
}
