"""
ServiceDesk Pricing - Budget Aggregator
Consolidates team cost, other costs, taxes and the margin-derived price into
contract totals and an evenly divided month-by-month view.
"""
from engines.errors import require_list, require_mapping
from engines.margin import calculate_margin_analysis, calculate_margins, sum_other_costs
from engines.taxes import group_totals


def _infrastructure(other_costs):
    return sum(c.get('value') or 0 for c in other_costs
               if str(c.get('category', '')).lower() == 'infrastructure')


def calculate_consolidated_budget(team_costs, other_costs, taxes, margin_config,
                                  contract_months, start_year, start_month=1):
    """All inputs are monthly figures; contract totals = monthly x months."""
    require_mapping(team_costs, 'teamCosts'); require_mapping(taxes, 'taxes')
    require_list(other_costs, 'otherCosts')
    months = max(int(contract_months or 0), 0)

    team_monthly = team_costs['totalMonthlyCost']
    other_monthly = sum_other_costs(other_costs)
    margins = calculate_margins(team_monthly, margin_config, other_costs)

    totals = {
        'teamCosts': team_monthly * months,
        'otherCosts': other_monthly * months,
        'infrastructureCosts': _infrastructure(other_costs) * months,
        'taxes': taxes['totalTaxes'] * months,
        'revenue': margins['totalPrice'] * months,
    }
    totals['totalCosts'] = totals['teamCosts'] + totals['otherCosts']
    totals['profit'] = totals['revenue'] - totals['totalCosts'] - totals['taxes']

    monthly = []
    for i in range(months):
        m = (start_month - 1 + i)
        rev = totals['revenue'] / months
        cost = totals['totalCosts'] / months
        tax = totals['taxes'] / months
        profit = rev - cost - tax
        monthly.append({
            'month': m % 12 + 1, 'year': start_year + m // 12,
            'teamCosts': totals['teamCosts'] / months,
            'otherCosts': totals['otherCosts'] / months,
            'taxes': tax, 'totalCosts': cost, 'revenue': rev, 'profit': profit,
            'margin': profit / rev * 100 if rev > 0 else 0.0,
        })

    breakdown = team_costs.get('breakdown') or []
    groups = group_totals(taxes)
    return {
        'contractMonths': months,
        'teamCosts': {
            'salaries': sum(b['baseSalary'] for b in breakdown),
            'benefits': sum(b['benefits'] for b in breakdown),
            'total': team_monthly,
            'breakdown': [{'memberId': b['memberId'], 'memberName': b.get('memberName', ''),
                           'role': b.get('role', ''), 'monthlyCost': b['totalCost'],
                           'annualCost': b['annualCost']} for b in breakdown],
        },
        'infrastructureCosts': _infrastructure(other_costs),
        'otherCosts': other_monthly,
        'taxes': {'federal': groups['federal'], 'state': groups['state'],
                  'municipal': groups['municipal'], 'custom': groups['custom'],
                  'total': taxes['totalTaxes'], 'breakdown': [dict(t) for t in taxes['breakdown']]},
        'totalCosts': team_monthly + other_monthly,
        'margin': margin_config,
        'marginResult': margins,
        'totalPrice': margins['totalPrice'],
        'contractTotals': totals,
        'monthlyBreakdown': monthly,
        'marginAnalysis': calculate_margin_analysis(monthly, totals['taxes']),
    }
