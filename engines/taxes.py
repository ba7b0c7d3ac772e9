"""
ServiceDesk Pricing - Tax Engine
Standard Brazilian taxes (federal, state, municipal) plus custom taxes over
a revenue figure, with effective rate and optimization hints.
"""
from engines.errors import require_list, require_mapping, require_number

FEDERAL_TAXES = ('PIS', 'COFINS', 'IR', 'CSLL')
STATE_TAXES = ('ICMS',)
MUNICIPAL_TAXES = ('ISS',)
STANDARD_TAXES = FEDERAL_TAXES + STATE_TAXES + MUNICIPAL_TAXES

# Stand-in for profit when a custom tax is levied on profit
PROFIT_PROXY = 0.20


def calculate_taxes(revenue, tax_config, cache=None, profit_proxy=PROFIT_PROXY):
    require_number(revenue, 'revenue'); require_mapping(tax_config, 'taxes')
    custom = require_list(tax_config.get('customTaxes') or [], 'taxes.customTaxes')
    cache_input = {'revenue': revenue, 'taxConfig': tax_config, 'profitProxy': profit_proxy}
    if cache is not None:
        hit = cache.get_tax_calculations(cache_input)
        if hit is not None:
            return hit

    breakdown = []
    for name in STANDARD_TAXES:
        rate = tax_config.get(name.lower()) or 0
        breakdown.append({'taxName': name, 'rate': rate, 'base': revenue,
                          'amount': revenue * rate / 100, 'group': _group(name)})

    for tax in custom:
        require_mapping(tax, 'taxes.customTaxes[]')
        basis = tax.get('calculationBase', 'revenue')
        rate = tax.get('rate') or 0
        if basis == 'fixed':
            base, amount = revenue, rate
        else:
            base = revenue * profit_proxy if basis == 'profit' else revenue
            amount = base * rate / 100
        breakdown.append({'taxName': tax.get('name', 'Custom'), 'rate': rate, 'base': base,
                          'amount': amount, 'group': 'custom'})

    total = sum(t['amount'] for t in breakdown)
    effective = total / revenue * 100 if revenue > 0 else 0.0
    result = {
        'revenue': revenue,
        'totalTaxes': total,
        'effectiveRate': max(effective, 0.0),
        'breakdown': breakdown,
        'optimizationSuggestions': tax_suggestions(tax_config, effective),
    }
    if cache is not None:
        cache.cache_tax_calculations(cache_input, result)
    return result


def _group(name):
    if name in FEDERAL_TAXES: return 'federal'
    if name in STATE_TAXES: return 'state'
    return 'municipal'


def tax_suggestions(tax_config, effective_rate):
    tips = []
    if effective_rate > 30:
        tips.append('High effective rate - consider reviewing the tax regime')
    if (tax_config.get('iss') or 0) > 5:
        tips.append('High ISS - check for a lower rate based on service location')
    if (tax_config.get('ir') or 0) > 15:
        tips.append('High IR - review deductible expenses')
    return tips


def group_totals(tax_result):
    totals = {'federal': 0.0, 'state': 0.0, 'municipal': 0.0, 'custom': 0.0}
    for t in tax_result['breakdown']:
        totals[t.get('group', 'custom')] += t['amount']
    return totals
