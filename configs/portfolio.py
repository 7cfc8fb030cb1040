"""Asset-class policy for the portfolio summary.

CLASSIFICATION maps tickers to asset classes and sets the target allocation
per class. Targets are percentages and must add up to 100. A class whose
actual share differs from its target by ``warning_margin`` points or more is
flagged as a warning, and by ``error_margin`` points or more as an error.
Tickers not listed here count as cash.
"""

CLASSIFICATION = {
    "symbols": {
        "XEQT.TO": "stocks",
        "ZEQT.TO": "stocks",
        "ZAG.TO": "bonds",
    },
    "targets": {
        "stocks": 50.0,
        "bonds": 50.0,
        "cash": 0.0,
    },
    "warning_margin": 2.5,
    "error_margin": 5.0,
}
