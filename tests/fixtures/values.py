"""
Test values fixtures for loader tests.

This module provides fixture functions that generate source values and the
host values they are expected to load as, ensuring consistent test values
across different test modules.
"""
import datetime
import decimal
import math

import pytest
from dateutil import tz


@pytest.fixture(scope='module')
def value_dict():
    """Return a dictionary of test values for all major types"""
    return {
        # Integers
        'int_value': 42,
        'big_int': 9223372036854775807,  # Max int64
        'small_int': -32768,  # Min int16

        # Boolean
        'bool_true': True,
        'bool_false': False,

        # Floating point
        'float_value': math.pi,
        'decimal_value': decimal.Decimal('123456.789123'),

        # String types
        'char_value': 'X',
        'varchar_value': 'Variable length string',
        'text_value': 'Lorem ipsum dolor sit amet, consectetur adipiscing elit.',

        # Date and time
        'date_value': datetime.date(2023, 5, 15),
        'time_value': datetime.time(14, 30, 45),
        'datetime_value': datetime.datetime(2023, 5, 15, 14, 30, 45),
        'datetime_tz_value': datetime.datetime(2023, 5, 15, 14, 30, 45, tzinfo=tz.tzoffset(None, -4 * 3600)),

        # Binary data
        'binary_value': b'\x01\x02\x03\x04\x05',

        # NULL values
        'null_value': None,
    }


@pytest.fixture(scope='module')
def formatted_temporals():
    """Return the host strings the date/time entries of `value_dict` load as"""
    return {
        'date_value': '2023-05-15',
        'time_value': '14:30:45.000000',
        'datetime_value': '2023-05-15 14:30:45.000000',
        'datetime_tz_value': '2023-05-15T14:30:45.000000-0400',
    }
