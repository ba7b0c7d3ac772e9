"""
ServiceDesk Pricing - Financial Engine
ROI, NPV, IRR (Newton-Raphson) and payback with a period cash-flow ledger.
"""
import logging

from engines.errors import require_list, require_number

DEFAULT_DISCOUNT_RATE = 0.10
PAYBACK_DISCOUNT_RATE = 0.10
IRR_GUESS = 0.10
IRR_MAX_ITER = 100
IRR_TOLERANCE = 1e-4


def _check_series(investment, returns):
    require_number(investment, 'investment')
    for r in require_list(returns, 'returns'):
        require_number(r, 'returns[]')


def calculate_npv(investment, returns, rate=DEFAULT_DISCOUNT_RATE):
    npv = -investment
    for i, ret in enumerate(returns):
        npv += ret / (1 + rate) ** (i + 1)
    return npv


def calculate_irr(investment, returns, guess=IRR_GUESS, max_iter=IRR_MAX_ITER, tolerance=IRR_TOLERANCE):
    """IRR in percent.

    Stops when |NPV| < tolerance. If the derivative vanishes, or the
    iteration budget runs out, the last iterate is returned as an
    approximation, not a guaranteed root.
    """
    if not returns:
        return 0.0
    rate = guess
    for _ in range(max_iter):
        npv = -investment; dnpv = 0.0
        try:
            for period, ret in enumerate(returns):
                factor = (1 + rate) ** (period + 1)
                npv += ret / factor
                dnpv -= (period + 1) * ret / (factor * (1 + rate))
        except (ZeroDivisionError, OverflowError):
            logging.warning(f"irr: iteration diverged at rate {rate:.4f}")
            break
        if abs(npv) < tolerance:
            return rate * 100
        if abs(dnpv) < tolerance:
            break
        rate = rate - npv / dnpv
    else:
        logging.warning(f"irr: no convergence after {max_iter} iterations, returning {rate:.4f}")
    return rate * 100


def calculate_roi(investment, returns, discount_rate=DEFAULT_DISCOUNT_RATE, cache=None):
    _check_series(investment, returns)
    cache_input = {'investment': investment, 'returns': list(returns), 'discountRate': discount_rate}
    if cache is not None:
        hit = cache.get_roi_analysis(cache_input)
        if hit is not None:
            return hit

    if not returns:
        result = {'investment': investment, 'returns': [], 'totalReturns': 0.0,
                  'roi': 0.0, 'irr': 0.0, 'npv': 0.0, 'period': 0, 'discountRate': discount_rate}
    else:
        total = sum(returns)
        result = {
            'investment': investment,
            'returns': list(returns),
            'totalReturns': total,
            'roi': (total - investment) / investment * 100 if investment > 0 else 0.0,
            'irr': calculate_irr(investment, returns),
            'npv': calculate_npv(investment, returns, discount_rate),
            'period': len(returns),
            'discountRate': discount_rate,
        }
    if cache is not None:
        cache.cache_roi_analysis(cache_input, result)
    return result


def calculate_payback(investment, returns, discount_rate=PAYBACK_DISCOUNT_RATE):
    """Payback periods are 1-based; 0 means the investment never pays back."""
    _check_series(investment, returns)
    ledger = []
    cumulative = -investment
    simple = 0
    for i, ret in enumerate(returns):
        period = i + 1
        cumulative += ret
        ledger.append({
            'period': period,
            'cashIn': ret,
            'cashOut': investment if period == 1 else 0.0,
            'netCashFlow': ret,
            'discountedCashFlow': ret / (1 + discount_rate) ** period,
            'cumulativeCashFlow': cumulative,
        })
        if simple == 0 and cumulative >= 0:
            simple = period

    discounted = 0
    disc_cum = -investment
    for row in ledger:
        disc_cum += row['discountedCashFlow']
        if disc_cum >= 0:
            discounted = row['period']
            break

    return {
        'simplePayback': simple,
        'discountedPayback': discounted,
        'breakEvenPoint': simple,
        'cashFlowAnalysis': ledger,
    }
