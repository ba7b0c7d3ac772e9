"""
ServiceDesk Pricing - Margin Engine
Sale price from a cost base and a margin policy, plus margin trend over a
monthly budget.
"""
from engines.errors import InvalidInputError, MarginConfigError, require_list, require_mapping, require_number

MARGIN_TYPES = ('percentage', 'fixed')


def sum_other_costs(additional_costs):
    costs = require_list(additional_costs or [], 'otherCosts')
    return sum(require_mapping(c, 'otherCosts[]').get('value') or 0 for c in costs)


def validate_margin_config(margin_config):
    require_mapping(margin_config, 'margin')
    mtype = margin_config.get('type', 'percentage')
    if mtype not in MARGIN_TYPES:
        raise InvalidInputError(f"margin type must be one of {MARGIN_TYPES}, got '{mtype}'",
                                {'field': 'margin.type'})
    value = require_number(margin_config.get('value', 0), 'margin.value')
    if mtype == 'percentage' and value >= 100:
        raise MarginConfigError(f"percentage margin must be below 100, got {value}",
                                {'field': 'margin.value', 'value': value})
    return mtype, value


def calculate_margins(total_costs, margin_config, additional_costs=None):
    """Price = cost / (1 - m%) for percentage margins, cost + m for fixed ones.

    Additional costs are folded into the cost base first. The min/target/max
    bounds are reported, not enforced.
    """
    require_number(total_costs, 'totalCosts')
    mtype, value = validate_margin_config(margin_config)
    other = sum_other_costs(additional_costs)
    cost = total_costs + other

    price = cost / (1 - value / 100) if mtype == 'percentage' else cost + value
    margin_value = price - cost
    gross_pct = margin_value / price * 100 if price > 0 else 0.0
    return {
        'costBase': cost,
        'otherCosts': other,
        'marginType': mtype,
        'totalPrice': price,
        'grossMarginValue': margin_value,
        'grossMargin': gross_pct,
        'netMargin': gross_pct,
        'markup': margin_value / cost * 100 if cost > 0 else 0.0,
        'bounds': {k: margin_config.get(k) for k in ('minimumMargin', 'targetMargin', 'maximumMargin')},
    }


def calculate_margin_analysis(monthly_budgets, tax_total=0.0):
    trend = []
    revenue = 0.0; costs = 0.0
    for i, b in enumerate(require_list(monthly_budgets, 'monthlyBreakdown')):
        rev = b.get('revenue') or 0
        trend.append({
            'period': i + 1,
            'grossMargin': (rev - b.get('totalCosts', 0)) / rev * 100 if rev > 0 else 0.0,
            'netMargin': b.get('profit', 0) / rev * 100 if rev > 0 else 0.0,
        })
        revenue += rev
        costs += b.get('totalCosts') or 0

    gross = (revenue - costs) / revenue * 100 if revenue > 0 else 0.0
    net = (revenue - costs - tax_total) / revenue * 100 if revenue > 0 else 0.0
    # no separate overhead model: EBITDA and contribution follow gross
    return {'grossMargin': gross, 'netMargin': net, 'ebitdaMargin': gross,
            'contributionMargin': gross, 'marginTrend': trend}
