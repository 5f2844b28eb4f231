#!/usr/bin/env python3
"""
Credit Spread Sensitivities (CS01)
==================================

This example calculates the CS01 of a seasoned single name CDS and of
an index trade on the same dates:

- Parallel CS01: PV change for a 1bp shift of every curve spread
- Bucketed CS01: PV change for a 1bp shift of one curve spread at a time

Both are shown by bump and reprice and analytically.
"""

from opendate import Date

from isda_credit import ONE_BP, AnalyticCs01Calculator, CdsAnalyticFactory, CdsIndexTrade
from isda_credit import CdsTrade, CurveInstruments, FiniteDifferenceCs01Calculator, YieldCurve

# =============================================================================
# Setup
# =============================================================================

trade_date = Date(2013, 4, 21)
yield_curve = YieldCurve.flat(0.05)
factory = CdsAnalyticFactory()

maturities = [
    Date(2013, 6, 20), Date(2013, 9, 20), Date(2014, 3, 20), Date(2015, 3, 20),
    Date(2016, 3, 20), Date(2018, 3, 20), Date(2023, 3, 20),
]
spreads_bps = [50, 70, 80, 95, 100, 95, 80]
instruments = CurveInstruments(
    factory.make_cds(trade_date, trade_date, maturities),
    [s * ONE_BP for s in spreads_bps],
)

notional = 10_000_000
cds = factory.make_cds(trade_date, Date(2013, 2, 3), Date(2018, 3, 20))
trade = CdsTrade(cds, coupon=101 * ONE_BP, notional=notional)
index_trade = CdsIndexTrade(cds, coupon=101 * ONE_BP, notional=notional, index_factor=0.75)

fd = FiniteDifferenceCs01Calculator()
analytic = AnalyticCs01Calculator()

print('=' * 70)
print('ISDA Credit Analytics - CS01')
print('=' * 70)
print()

# =============================================================================
# Parallel CS01
# =============================================================================

print('-' * 70)
print('Parallel CS01 (per 1bp)')
print('-' * 70)
print()

print(f"{'Trade':<14} {'Bump/Reprice':>16} {'Analytic':>16}")
print('-' * 48)
for name, t in [('Single name', trade), ('Index (0.75)', index_trade)]:
    fd_cs01 = fd.parallel_cs01(t, instruments, yield_curve) * ONE_BP
    an_cs01 = analytic.parallel_cs01(t, instruments, yield_curve) * ONE_BP
    print(f'{name:<14} {fd_cs01:>16,.2f} {an_cs01:>16,.2f}')
print()

# =============================================================================
# Bucketed CS01
# =============================================================================

print('-' * 70)
print('Bucketed CS01 (per 1bp)')
print('-' * 70)
print()

fd_buckets = fd.bucketed_cs01(trade, instruments, yield_curve)
an_buckets = analytic.bucketed_cs01(trade, instruments, yield_curve)

print(f"{'Pillar':<12} {'Spread':>8} {'Bump/Reprice':>16} {'Analytic':>16}")
print('-' * 54)
for label, s, f, a in zip(fd_buckets.labels, spreads_bps, fd_buckets.values, an_buckets.values):
    print(f'{label:<12} {s:>6}bp {f * ONE_BP:>16,.4f} {a * ONE_BP:>16,.4f}')
print('-' * 54)
print(f"{'Total':<12} {'':>8} {fd_buckets.total() * ONE_BP:>16,.4f} {an_buckets.total() * ONE_BP:>16,.4f}")
print()
