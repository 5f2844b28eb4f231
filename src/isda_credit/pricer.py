"""
Analytic CDS pricer.

Values the protection and premium legs of a CDS in closed form. Between
consecutive integration points (the union of the yield and credit curve
knots) both the discount factor P(t) and the survival probability Q(t)
are exponential in t, so every integral has an exact solution:

    protection leg = LGD * sum  dH / (dH + dR) * (B0 - B1)
    with B = P * Q, dH = -ln(Q1/Q0), dR = -ln(P1/P0)

When dH + dR is close to zero the closed form is 0/0 and the series
functions from numerics are used instead.

All values are per unit notional, from the protection buyer's view, and
valued at the CDS cash settle time unless another valuation time is
given. Times are in years from the curves' time zero.
"""

import math

from .cds import CdsAnalytic, CdsCoupon
from .curves import CreditCurve, YieldCurve
from .enums import AccrualOnDefaultFormula, PriceType
from .numerics import epsilon, epsilon_p, epsilon_pp, integration_points
from .numerics import truncate_set_inclusive

# Below this |dH + dR| the series expansions replace the closed forms
SMALL = 1e-5


class AnalyticCdsPricer:
    """
    Closed-form pricer for CdsAnalytic instruments.

    Args:
        formula: Accrual on default formula, ORIGINAL_ISDA by default
    """

    def __init__(self, formula: AccrualOnDefaultFormula = AccrualOnDefaultFormula.ORIGINAL_ISDA):
        self.formula = formula
        self._omega = formula.omega

    def __repr__(self) -> str:
        return f'AnalyticCdsPricer(formula={self.formula.name})'

    # Present value

    def present_value(
        self,
        cds: CdsAnalytic,
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        fractional_spread: float,
        price_type: PriceType = PriceType.CLEAN,
        valuation_time: float | None = None,
    ) -> float:
        """
        PV per unit notional of a CDS paying a coupon of fractional_spread.

        Args:
            cds: The CDS
            yield_curve: Discount curve
            credit_curve: Survival curve
            fractional_spread: Coupon rate as a decimal (0.01 = 100bp)
            price_type: CLEAN excludes the accrued premium
            valuation_time: Time the PV is valued at (default: cash settle)

        Returns
            Protection leg minus premium leg, 0.0 for an expired CDS
        """
        if cds.is_expired:
            return 0.0
        t = cds.valuation_time if valuation_time is None else valuation_time
        rpv01 = self.annuity(cds, yield_curve, credit_curve, price_type, 0.0)
        pro_leg = self.protection_leg(cds, yield_curve, credit_curve, 0.0)
        return (pro_leg - fractional_spread * rpv01) / yield_curve.discount_factor(t)

    def par_spread(self, cds: CdsAnalytic, yield_curve: YieldCurve, credit_curve: CreditCurve) -> float:
        """
        Coupon that gives the CDS a zero clean PV.

        Raises
            ValueError: If the CDS has expired
        """
        if cds.is_expired:
            raise ValueError(f'Cannot compute the par spread of an expired CDS: {cds}')
        rpv01 = self.annuity(cds, yield_curve, credit_curve, PriceType.CLEAN, 0.0)
        pro_leg = self.protection_leg(cds, yield_curve, credit_curve, 0.0)
        return pro_leg / rpv01

    # Protection leg

    def protection_leg(
        self,
        cds: CdsAnalytic,
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        valuation_time: float | None = None,
    ) -> float:
        """Value of the protection leg per unit notional."""
        if cds.protection_end <= 0.0:
            return 0.0
        t_val = cds.valuation_time if valuation_time is None else valuation_time
        knots = integration_points(
            cds.effective_protection_start, cds.protection_end,
            yield_curve.knot_times, credit_curve.knot_times,
        )
        pv = 0.0
        ht0 = credit_curve.rt(knots[0])
        rt0 = yield_curve.rt(knots[0])
        b0 = math.exp(-ht0 - rt0)
        for t in knots[1:]:
            ht1 = credit_curve.rt(t)
            rt1 = yield_curve.rt(t)
            b1 = math.exp(-ht1 - rt1)
            dht = ht1 - ht0
            dhrt = dht + rt1 - rt0
            if abs(dhrt) < SMALL:
                pv += dht * b0 * epsilon(-dhrt)
            else:
                pv += (b0 - b1) * dht / dhrt
            ht0, rt0, b0 = ht1, rt1, b1
        pv *= cds.lgd
        return pv / yield_curve.discount_factor(t_val)

    # Premium leg

    def annuity(
        self,
        cds: CdsAnalytic,
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        price_type: PriceType = PriceType.CLEAN,
        valuation_time: float | None = None,
    ) -> float:
        """
        Risky annuity (RPV01): the premium leg per unit of coupon.

        Includes accrual on default when the CDS pays it. The clean value
        excludes the premium accrued up to step-in.
        """
        if cds.is_expired:
            return 0.0
        t_val = cds.valuation_time if valuation_time is None else valuation_time
        pv = self._dirty_annuity(cds, yield_curve, credit_curve)
        val_df = yield_curve.discount_factor(t_val)
        if price_type is PriceType.CLEAN:
            cs_time = cds.valuation_time
            cs_df = val_df if t_val == cs_time else yield_curve.discount_factor(cs_time)
            prot_start = cds.effective_protection_start
            q = 1.0 if prot_start <= 0.0 else credit_curve.survival_probability(prot_start)
            pv -= cds.accrued_year_fraction * cs_df * q
        return pv / val_df

    rpv01 = annuity

    def _accrual_points(self, cds: CdsAnalytic, yield_curve: YieldCurve, credit_curve: CreditCurve):
        start = cds.effective_protection_start if cds.num_payments == 1 else cds.acc_start
        return integration_points(
            start, cds.protection_end, yield_curve.knot_times, credit_curve.knot_times,
        )

    def _dirty_annuity(self, cds: CdsAnalytic, yield_curve: YieldCurve, credit_curve: CreditCurve) -> float:
        pv = 0.0
        for coupon in cds.coupons:
            q = math.exp(-credit_curve.rt(coupon.effective_end))
            p = math.exp(-yield_curve.rt(coupon.payment_time))
            pv += coupon.year_frac * p * q

        if cds.pay_acc_on_default:
            points = self._accrual_points(cds, yield_curve, credit_curve)
            for coupon in cds.coupons:
                pv += self._accrual_on_default(
                    coupon, cds.effective_protection_start, points, yield_curve, credit_curve,
                )
        return pv

    def _accrual_on_default(
        self,
        coupon: CdsCoupon,
        effective_start: float,
        points,
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
    ) -> float:
        """Premium accrued at default over one coupon period, per unit coupon."""
        start = max(coupon.effective_start, effective_start)
        if start >= coupon.effective_end:
            return 0.0
        knots = truncate_set_inclusive(start, coupon.effective_end, points)
        markit = self.formula is AccrualOnDefaultFormula.MARKIT_FIX

        t = knots[0]
        ht0 = credit_curve.rt(t)
        rt0 = yield_curve.rt(t)
        b0 = math.exp(-ht0 - rt0)
        t0 = t - coupon.effective_start + self._omega
        pv = 0.0
        for j in range(1, len(knots)):
            t = knots[j]
            ht1 = credit_curve.rt(t)
            rt1 = yield_curve.rt(t)
            b1 = math.exp(-ht1 - rt1)
            dt = knots[j] - knots[j - 1]
            dht = ht1 - ht0
            dhrt = dht + rt1 - rt0
            if markit:
                if abs(dhrt) < SMALL:
                    pv += dht * dt * b0 * epsilon_p(-dhrt)
                else:
                    pv += dht * dt / dhrt * ((b0 - b1) / dhrt - b1)
            else:
                t1 = t - coupon.effective_start + self._omega
                if abs(dhrt) < SMALL:
                    pv += dht * b0 * (t0 * epsilon(-dhrt) + dt * epsilon_p(-dhrt))
                else:
                    pv += dht / dhrt * (t0 * b0 - t1 * b1 + dt / dhrt * (b0 - b1))
                t0 = t1
            ht0, rt0, b0 = ht1, rt1, b1
        return coupon.yf_ratio * pv

    # Credit curve sensitivities

    def pv_credit_sensitivity(
        self,
        cds: CdsAnalytic,
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        fractional_spread: float,
        node: int,
        price_type: PriceType = PriceType.DIRTY,
    ) -> float:
        """Derivative of the PV with respect to the zero hazard rate at a credit curve node."""
        if cds.is_expired:
            return 0.0
        premium_sense = self.premium_leg_credit_sensitivity(cds, yield_curve, credit_curve, node)
        protection_sense = self.protection_leg_credit_sensitivity(cds, yield_curve, credit_curve, node)
        sense = protection_sense - fractional_spread * premium_sense
        prot_start = cds.effective_protection_start
        if price_type is PriceType.CLEAN and prot_start > 0.0:
            # the clean price removes the accrued premium observed at protection start
            sense += fractional_spread * cds.accrued_year_fraction * credit_curve.single_node_discount_factor_sensitivity(
                prot_start, node,
            )
        return sense

    def par_spread_credit_sensitivity(
        self,
        cds: CdsAnalytic,
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        node: int,
    ) -> float:
        """Derivative of the par spread with respect to the zero hazard rate at a credit curve node."""
        if cds.is_expired:
            return 0.0
        a = self.protection_leg(cds, yield_curve, credit_curve)
        b = self.annuity(cds, yield_curve, credit_curve, PriceType.CLEAN)
        spread = a / b
        dadh = self.protection_leg_credit_sensitivity(cds, yield_curve, credit_curve, node)
        dbdh = self.premium_leg_credit_sensitivity(cds, yield_curve, credit_curve, node)
        return spread * (dadh / a - dbdh / b)

    def premium_leg_credit_sensitivity(
        self,
        cds: CdsAnalytic,
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        node: int,
    ) -> float:
        """Derivative of the dirty risky annuity with respect to a credit curve node."""
        if cds.is_expired:
            return 0.0
        pv_sense = 0.0
        for coupon in cds.coupons:
            dqdh = credit_curve.single_node_discount_factor_sensitivity(coupon.effective_end, node)
            if dqdh == 0.0:
                continue
            p = math.exp(-yield_curve.rt(coupon.payment_time))
            pv_sense += coupon.year_frac * p * dqdh

        if cds.pay_acc_on_default:
            points = self._accrual_points(cds, yield_curve, credit_curve)
            for coupon in cds.coupons:
                pv_sense += self._accrual_on_default_credit_sensitivity(
                    coupon, cds.effective_protection_start, points, yield_curve, credit_curve, node,
                )
        return pv_sense / yield_curve.discount_factor(cds.valuation_time)

    def _accrual_on_default_credit_sensitivity(
        self,
        coupon: CdsCoupon,
        effective_start: float,
        points,
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        node: int,
    ) -> float:
        start = max(coupon.effective_start, effective_start)
        if start >= coupon.effective_end:
            return 0.0
        knots = truncate_set_inclusive(start, coupon.effective_end, points)
        markit = self.formula is AccrualOnDefaultFormula.MARKIT_FIX

        t = knots[0]
        ht0, sense0 = credit_curve.rt_and_sensitivity(t, node)
        rt0 = yield_curve.rt(t)
        p0 = math.exp(-rt0)
        q0 = math.exp(-ht0)
        b0 = p0 * q0
        dqdr0 = -sense0 * q0
        t0 = t - coupon.effective_start + self._omega
        pv_sense = 0.0
        for j in range(1, len(knots)):
            t = knots[j]
            ht1, sense1 = credit_curve.rt_and_sensitivity(t, node)
            rt1 = yield_curve.rt(t)
            p1 = math.exp(-rt1)
            q1 = math.exp(-ht1)
            b1 = p1 * q1
            dqdr1 = -sense1 * q1
            dt = knots[j] - knots[j - 1]
            dht = ht1 - ht0
            # tiny offset keeps the closed form finite when dht + drt is exactly zero
            dhrt = dht + rt1 - rt0 + 1e-50

            if markit:
                if abs(dhrt) < SMALL:
                    e_p = epsilon_p(-dhrt)
                    e_pp = epsilon_pp(-dhrt)
                    dpv_dq0 = p0 * dt * ((1 + dht) * e_p - dht * e_pp)
                    dpv_dq1 = b0 * dt / q1 * (-e_p + dht * e_pp)
                    pv_sense += dpv_dq0 * dqdr0 + dpv_dq1 * dqdr1
                else:
                    w1 = (b0 - b1) / dhrt
                    w2 = w1 - b1
                    w3 = dht / dhrt
                    w4 = dt / dhrt
                    w5 = (1 - w3) * w2
                    dpv_dq0 = w4 / q0 * (w5 + w3 * (b0 - w1))
                    dpv_dq1 = w4 / q1 * (w5 + w3 * (b1 * (1 + dhrt) - w1))
                    pv_sense += dpv_dq0 * dqdr0 - dpv_dq1 * dqdr1
            else:
                t1 = t - coupon.effective_start + self._omega
                if abs(dhrt) < SMALL:
                    e = epsilon(-dhrt)
                    e_p = epsilon_p(-dhrt)
                    e_pp = epsilon_pp(-dhrt)
                    w1 = t0 * e + dt * e_p
                    w2 = t0 * e_p + dt * e_pp
                    dpv_dq0 = p0 * ((1 + dht) * w1 - dht * w2)
                    dpv_dq1 = b0 / q1 * (-w1 + dht * w2)
                    pv_sense += dpv_dq0 * dqdr0 + dpv_dq1 * dqdr1
                else:
                    w1 = dt / dhrt
                    w2 = dht / dhrt
                    w3 = (t0 + w1) * b0 - (t1 + w1) * b1
                    w4 = (1 - w2) / dhrt
                    w5 = w1 / dhrt * (b0 - b1)
                    dpv_dq0 = w4 * w3 / q0 + w2 * ((t0 + w1) * p0 - w5 / q0)
                    dpv_dq1 = w4 * w3 / q1 + w2 * ((t1 + w1) * p1 - w5 / q1)
                    pv_sense += dpv_dq0 * dqdr0 - dpv_dq1 * dqdr1
                t0 = t1
            ht0, p0, q0, b0, dqdr0 = ht1, p1, q1, b1, dqdr1
            rt0 = rt1
        return coupon.yf_ratio * pv_sense

    def protection_leg_credit_sensitivity(
        self,
        cds: CdsAnalytic,
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        node: int,
    ) -> float:
        """
        Derivative of the protection leg with respect to a credit curve node.

        Raises
            ValueError: If node is not a knot index of the credit curve
        """
        n = credit_curve.num_knots
        if not 0 <= node < n:
            raise ValueError(f'Node {node} out of range [0, {n})')
        if cds.protection_end <= 0.0:
            return 0.0
        # the node only affects the curve between its neighbouring knots
        if node != 0 and cds.protection_end <= credit_curve.get_time(node - 1):
            return 0.0
        if node != n - 1 and cds.effective_protection_start >= credit_curve.get_time(node + 1):
            return 0.0

        knots = integration_points(
            cds.effective_protection_start, cds.protection_end,
            yield_curve.knot_times, credit_curve.knot_times,
        )
        t = knots[0]
        ht0, sense0 = credit_curve.rt_and_sensitivity(t, node)
        rt0 = yield_curve.rt(t)
        p0 = math.exp(-rt0)
        q0 = math.exp(-ht0)
        dqdr0 = -sense0 * q0
        pv_sense = 0.0
        for t in knots[1:]:
            ht1, sense1 = credit_curve.rt_and_sensitivity(t, node)
            rt1 = yield_curve.rt(t)
            p1 = math.exp(-rt1)
            q1 = math.exp(-ht1)
            dqdr1 = -sense1 * q1
            if dqdr0 != 0.0 or dqdr1 != 0.0:
                h_bar = ht1 - ht0
                f_bar = rt1 - rt0
                fh_bar = h_bar + f_bar
                if abs(fh_bar) < SMALL:
                    e = epsilon(-fh_bar)
                    e_p = epsilon_p(-fh_bar)
                    dpv_dq0 = p0 * ((1 + h_bar) * e - h_bar * e_p)
                    dpv_dq1 = -p0 * q0 / q1 * (e - h_bar * e_p)
                    pv_sense += dpv_dq0 * dqdr0 + dpv_dq1 * dqdr1
                else:
                    w = f_bar / fh_bar * (p0 * q0 - p1 * q1)
                    pv_sense += ((w / q0 + h_bar * p0) / fh_bar) * dqdr0
                    pv_sense -= ((w / q1 + h_bar * p1) / fh_bar) * dqdr1
            ht0, rt0, p0, q0, dqdr0 = ht1, rt1, p1, q1, dqdr1
        pv_sense *= cds.lgd
        return pv_sense / yield_curve.discount_factor(cds.valuation_time)

    # Yield curve sensitivities

    def _discounting_adjustment(self, value_at_zero, value_sense, yield_curve, cds, node) -> float:
        # d(V / P(cs)) = dV / P(cs) - V / P(cs)^2 * dP(cs)
        df = yield_curve.discount_factor(cds.valuation_time)
        df_sense = yield_curve.single_node_discount_factor_sensitivity(cds.valuation_time, node)
        return value_sense / df - value_at_zero * df_sense / (df * df)

    def protection_leg_yield_sensitivity(
        self,
        cds: CdsAnalytic,
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        node: int,
    ) -> float:
        """Derivative of the protection leg with respect to a yield curve node."""
        n = yield_curve.num_knots
        if not 0 <= node < n:
            raise ValueError(f'Node {node} out of range [0, {n})')
        if cds.protection_end <= 0.0:
            return 0.0
        knots = integration_points(
            cds.effective_protection_start, cds.protection_end,
            yield_curve.knot_times, credit_curve.knot_times,
        )
        t = knots[0]
        rt0, sense0 = yield_curve.rt_and_sensitivity(t, node)
        ht0 = credit_curve.rt(t)
        p0 = math.exp(-rt0)
        q0 = math.exp(-ht0)
        dpdr0 = -sense0 * p0
        pv_sense = 0.0
        for t in knots[1:]:
            rt1, sense1 = yield_curve.rt_and_sensitivity(t, node)
            ht1 = credit_curve.rt(t)
            p1 = math.exp(-rt1)
            q1 = math.exp(-ht1)
            dpdr1 = -sense1 * p1
            if dpdr0 != 0.0 or dpdr1 != 0.0:
                h_bar = ht1 - ht0
                fh_bar = h_bar + rt1 - rt0
                if abs(fh_bar) < SMALL:
                    e = epsilon(-fh_bar)
                    e_p = epsilon_p(-fh_bar)
                    dpv_dp0 = q0 * h_bar * (e - e_p)
                    dpv_dp1 = h_bar * p0 * q0 / p1 * e_p
                    pv_sense += dpv_dp0 * dpdr0 + dpv_dp1 * dpdr1
                else:
                    w = (p0 * q0 - p1 * q1) / fh_bar
                    pv_sense += h_bar / fh_bar * (q0 - w / p0) * dpdr0
                    pv_sense -= h_bar / fh_bar * (q1 - w / p1) * dpdr1
            ht0, rt0, p0, q0, dpdr0 = ht1, rt1, p1, q1, dpdr1
        pv_sense *= cds.lgd
        pro_leg = self.protection_leg(cds, yield_curve, credit_curve, 0.0)
        return self._discounting_adjustment(pro_leg, pv_sense, yield_curve, cds, node)

    def premium_leg_yield_sensitivity(
        self,
        cds: CdsAnalytic,
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        node: int,
    ) -> float:
        """
        Derivative of the dirty risky annuity with respect to a yield curve node.

        Raises
            NotImplementedError: For accrual on default under a formula other
                than MARKIT_FIX
        """
        n = yield_curve.num_knots
        if not 0 <= node < n:
            raise ValueError(f'Node {node} out of range [0, {n})')
        if cds.is_expired:
            return 0.0
        if cds.pay_acc_on_default and self.formula is not AccrualOnDefaultFormula.MARKIT_FIX:
            raise NotImplementedError(
                f'Yield sensitivity of accrual on default is only available for MARKIT_FIX, not {self.formula.name}'
            )
        pv_sense = 0.0
        for coupon in cds.coupons:
            dpdr = yield_curve.single_node_discount_factor_sensitivity(coupon.payment_time, node)
            if dpdr == 0.0:
                continue
            q = math.exp(-credit_curve.rt(coupon.effective_end))
            pv_sense += coupon.year_frac * q * dpdr

        if cds.pay_acc_on_default:
            points = self._accrual_points(cds, yield_curve, credit_curve)
            for coupon in cds.coupons:
                pv_sense += self._accrual_on_default_yield_sensitivity(
                    coupon, cds.effective_protection_start, points, yield_curve, credit_curve, node,
                )
        dirty = self._dirty_annuity(cds, yield_curve, credit_curve)
        return self._discounting_adjustment(dirty, pv_sense, yield_curve, cds, node)

    def _accrual_on_default_yield_sensitivity(
        self,
        coupon: CdsCoupon,
        effective_start: float,
        points,
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        node: int,
    ) -> float:
        # Markit accrual integral only
        start = max(coupon.effective_start, effective_start)
        if start >= coupon.effective_end:
            return 0.0
        knots = truncate_set_inclusive(start, coupon.effective_end, points)
        t = knots[0]
        rt0, sense0 = yield_curve.rt_and_sensitivity(t, node)
        ht0 = credit_curve.rt(t)
        p0 = math.exp(-rt0)
        q0 = math.exp(-ht0)
        b0 = p0 * q0
        dpdr0 = -sense0 * p0
        pv_sense = 0.0
        for j in range(1, len(knots)):
            t = knots[j]
            rt1, sense1 = yield_curve.rt_and_sensitivity(t, node)
            ht1 = credit_curve.rt(t)
            p1 = math.exp(-rt1)
            q1 = math.exp(-ht1)
            b1 = p1 * q1
            dpdr1 = -sense1 * p1
            dt = knots[j] - knots[j - 1]
            dht = ht1 - ht0
            dhrt = dht + rt1 - rt0 + 1e-50
            if abs(dhrt) < SMALL:
                e_p = epsilon_p(-dhrt)
                e_pp = epsilon_pp(-dhrt)
                dpv_dp0 = dht * dt * q0 * (e_p - e_pp)
                dpv_dp1 = dht * dt * b0 / p1 * e_pp
            else:
                dhrt2 = dhrt * dhrt
                dhrt3 = dhrt2 * dhrt
                dpv_dp0 = dht * dt * (q0 / dhrt2 - 2 * (b0 - b1) / (dhrt3 * p0) + b1 / (dhrt2 * p0))
                dpv_dp1 = dht * dt * (
                    -q1 / dhrt2 + 2 * (b0 - b1) / (dhrt3 * p1) - q1 / dhrt - b1 / (dhrt2 * p1)
                )
            pv_sense += dpv_dp0 * dpdr0 + dpv_dp1 * dpdr1
            ht0, rt0, p0, q0, b0, dpdr0 = ht1, rt1, p1, q1, b1, dpdr1
        return coupon.yf_ratio * pv_sense


# Stateless default pricer
DEFAULT_PRICER = AnalyticCdsPricer()
