"""
Shared test fixtures for credit analytics tests.
"""

import os
import pathlib
import sys

import numpy as np
import pytest
from opendate import Date

# Add src to path for imports
sys.path.insert(0, os.path.join(pathlib.Path(__file__).parent, '..', 'src'))

from isda_credit import CdsAnalyticFactory, YieldCurve  # noqa: E402

NOTIONAL = 1.0e7
ONE_BP = 1.0e-4


@pytest.fixture
def factory():
    """Factory with the standard conventions."""
    return CdsAnalyticFactory()


@pytest.fixture
def trade_date():
    """Trade date of the CS01 regression market."""
    return Date(2013, 4, 21)


@pytest.fixture
def yield_curve():
    """Flat 5% yield curve."""
    return YieldCurve.flat(0.05)


@pytest.fixture
def market_maturities():
    """Maturities of the seven par spread pillars."""
    return [
        Date(2013, 6, 20), Date(2013, 9, 20), Date(2014, 3, 20), Date(2015, 3, 20),
        Date(2016, 3, 20), Date(2018, 3, 20), Date(2023, 3, 20),
    ]


@pytest.fixture
def market_spreads():
    """Par spreads of the pillars, as decimals."""
    return np.array([50, 70, 80, 95, 100, 95, 80]) * ONE_BP


@pytest.fixture
def market_cds(factory, trade_date, market_maturities):
    """Pillar CDSs accruing from the trade date."""
    return factory.make_cds(trade_date, trade_date, market_maturities)


@pytest.fixture
def cds1(factory, trade_date):
    """Five year CDS with an accrual start before the trade date."""
    return factory.make_cds(trade_date, Date(2013, 2, 3), Date(2018, 3, 20))


@pytest.fixture
def cds2(factory, trade_date):
    """CDS used as an index in the index factor tests."""
    return factory.make_cds(trade_date, Date(2013, 2, 3), Date(2020, 2, 20))


@pytest.fixture
def imm_pillars(factory):
    """Six IMM pillars traded on 2011-06-13."""
    return factory.make_imm_cds(Date(2011, 6, 13), ['6M', '1Y', '3Y', '5Y', '7Y', '10Y'])


@pytest.fixture
def imm_spreads():
    """Par spreads of the IMM pillars."""
    return np.array([0.008863, 0.008863, 0.013304, 0.017149, 0.018390, 0.019472])
