#!/usr/bin/env python3
"""
Curve Building
==============

This example demonstrates:
1. Bootstrapping a yield curve from money market and swap rates
2. Calibrating a credit curve to par spreads at IMM pillars
3. Reading survival probabilities and forward hazard rates
4. What the arbitrage handling policies do with inverted quotes
"""

from opendate import Date

from isda_credit import ArbitrageError, ArbitrageHandling, CdsAnalyticFactory
from isda_credit import CreditCurveCalibrator, bootstrap_yield_curve

print('=' * 70)
print('ISDA Credit Analytics - Curve Building')
print('=' * 70)
print()

# =============================================================================
# Yield Curve
# =============================================================================

print('-' * 70)
print('Bootstrapping the Yield Curve')
print('-' * 70)
print()

trade_date = Date(2013, 5, 29)

rates = [
    0.0034, 0.0064, 0.0103, 0.0136, 0.0163, 0.0206,
    0.0227, 0.0252, 0.0273, 0.0311, 0.0358, 0.0360, 0.0416, 0.0441, 0.0467,
]
tenors = ['1M', '2M', '3M', '6M', '9M', '12M', '2Y', '3Y', '4Y', '5Y', '6Y', '7Y', '8Y', '9Y', '10Y']

yield_curve = bootstrap_yield_curve(trade_date, rates, tenors)

print(f"{'Tenor':<8} {'Time':>10} {'Zero Rate':>12} {'DF':>12}")
print('-' * 44)
for tenor, t, r in zip(tenors, yield_curve.knot_times, yield_curve.zero_rates):
    print(f'{tenor:<8} {t:>10.6f} {r:>12.6%} {yield_curve.discount_factor(t):>12.8f}')
print()

# =============================================================================
# Credit Curve
# =============================================================================

print('-' * 70)
print('Calibrating the Credit Curve')
print('-' * 70)
print()

factory = CdsAnalyticFactory(recovery_rate=0.4)
pillar_tenors = ['6M', '1Y', '3Y', '5Y', '7Y', '10Y']
pillars = factory.make_imm_cds(trade_date, pillar_tenors)
spreads = [0.0050, 0.0065, 0.0090, 0.0115, 0.0130, 0.0140]

credit_curve = CreditCurveCalibrator().calibrate(pillars, spreads, yield_curve)

print(f"{'Tenor':<8} {'Maturity':<12} {'Spread':>10} {'Survival':>12} {'Fwd Hazard':>12}")
print('-' * 58)
for tenor, cds, spread in zip(pillar_tenors, pillars, spreads):
    t = cds.protection_end
    q = credit_curve.survival_probability(t)
    h = credit_curve.hazard_rate(t)
    print(f'{tenor:<8} {str(cds.maturity_date):<12} {spread * 1e4:>8.1f}bp {q:>12.8f} {h:>12.6%}')
print()

# =============================================================================
# Inverted Quotes
# =============================================================================

print('-' * 70)
print('Arbitrage Handling')
print('-' * 70)
print()

inverted = [0.0300, 0.0250, 0.0100, 0.0040, 0.0040, 0.0040]

for policy in ArbitrageHandling:
    try:
        curve = CreditCurveCalibrator(policy).calibrate(pillars, inverted, yield_curve)
        rates = ', '.join(f'{h:.4%}' for h in curve.hazard_rates)
        print(f'{policy.name:<18} average hazard rates: {rates}')
    except ArbitrageError as e:
        print(f'{policy.name:<18} {e}')
print()
