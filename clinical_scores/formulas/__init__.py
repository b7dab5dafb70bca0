"""Closed-form clinical calculators (eGFR, AKI staging, MELD, dose conversions) that sit beside the point scores."""
