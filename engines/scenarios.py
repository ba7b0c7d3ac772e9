"""
ServiceDesk Pricing - Scenario Engine
What-if re-runs of the team cost / margin / tax pipeline under percentage
adjustments. Scenario ROI is a fixed-fraction heuristic meant for relative
comparison only.
"""
import copy
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

from engines.errors import require_list, require_mapping, require_number
from engines.financial import calculate_roi
from engines.margin import calculate_margins
from engines.taxes import PROFIT_PROXY, calculate_taxes
from engines.team_cost import calculate_team_costs

ADJUSTMENT_CATEGORIES = ('salary', 'costs', 'revenue', 'taxes')

# Heuristic ROI: investment and single-period return as fractions of price
ROI_INVESTMENT_FRACTION = 0.20
ROI_RETURN_FRACTION = 0.15


def apply_adjustment(snapshot, adjustment):
    """Scale every field of the adjusted category by (1 + pct/100), in place."""
    category = adjustment.get('category')
    factor = 1 + require_number(adjustment.get('adjustment') or 0, 'adjustment') / 100
    if category == 'salary':
        for m in require_list(snapshot.get('team') or [], 'team'):
            require_mapping(m, 'team[]')
            m['salary'] = (m.get('salary') or 0) * factor
    elif category == 'costs':
        for c in require_list(snapshot.get('otherCosts') or [], 'otherCosts'):
            require_mapping(c, 'otherCosts[]')
            c['value'] = (c.get('value') or 0) * factor
    elif category == 'revenue':
        budget = require_mapping(snapshot.get('budget') or {}, 'budget')
        if budget.get('totalPrice') is not None:
            budget['totalPrice'] *= factor
    elif category == 'taxes':
        taxes = require_mapping(snapshot.get('taxes') or {}, 'taxes')
        for k, v in taxes.items():
            if isinstance(v, (int, float)) and not isinstance(v, bool):
                taxes[k] = v * factor
    else:
        logging.warning(f"scenarios: unknown adjustment category '{category}', skipped")


def evaluate_scenario(baseline, scenario, cache=None, profit_proxy=PROFIT_PROXY):
    require_mapping(scenario, 'scenarios[]')
    data = copy.deepcopy(baseline)
    for adj in require_list(scenario.get('adjustments') or [], 'scenarios[].adjustments'):
        require_mapping(adj, 'scenarios[].adjustments[]')
        apply_adjustment(data, adj)

    team = calculate_team_costs(data.get('team') or [], data.get('schedules') or [], cache=cache)
    margins = calculate_margins(team['totalMonthlyCost'], data.get('margin') or {},
                                data.get('otherCosts') or [])
    revenue = (data.get('budget') or {}).get('totalPrice')
    if revenue is None:
        revenue = margins['totalPrice']
    taxes = calculate_taxes(revenue, data.get('taxes') or {}, cache=cache,
                            profit_proxy=profit_proxy)
    price = margins['totalPrice']
    roi = calculate_roi(price * ROI_INVESTMENT_FRACTION, [price * ROI_RETURN_FRACTION], cache=cache)

    return {
        'scenario': scenario,
        'results': {
            'teamCosts': team['totalMonthlyCost'],
            'taxes': taxes['totalTaxes'],
            'totalPrice': price,
            'grossMargin': margins['grossMargin'],
            'roi': roi['roi'],
        },
    }


def run_scenarios(baseline, scenarios, cache=None, workers=1, profit_proxy=PROFIT_PROXY):
    """One result bundle per scenario, in the order supplied.

    Scenarios are independent; with workers > 1 they run on a thread pool and
    are re-associated with their position afterwards.
    """
    require_mapping(baseline, 'baseline')
    require_list(scenarios, 'scenarios')
    if workers <= 1 or len(scenarios) <= 1:
        return [evaluate_scenario(baseline, s, cache, profit_proxy) for s in scenarios]

    results = [None] * len(scenarios)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(evaluate_scenario, baseline, s, cache, profit_proxy): idx
                   for idx, s in enumerate(scenarios)}
        for future in as_completed(futures):
            results[futures[future]] = future.result()
    return results


def compare_scenarios(results):
    """Side-by-side deltas against the first scenario."""
    if not results:
        return []
    base = results[0]['results']
    rows = []
    for r in results:
        res = r['results']
        rows.append({
            'name': r['scenario'].get('name', ''),
            **res,
            'priceDelta': res['totalPrice'] - base['totalPrice'],
            'teamCostDelta': res['teamCosts'] - base['teamCosts'],
            'taxDelta': res['taxes'] - base['taxes'],
        })
    return rows
