"""
ServiceDesk Pricing - Pricing Pipeline
Runs every engine over one data snapshot:
  team cost + coverage -> margin price -> taxes -> budget -> ROI / payback
"""
from datetime import date

from engines.budget import calculate_consolidated_budget
from engines.coverage import run_coverage
from engines.data_loader import default_params
from engines.errors import InvalidInputError, require_mapping
from engines.financial import calculate_payback, calculate_roi
from engines.margin import calculate_margins
from engines.scenarios import run_scenarios
from engines.taxes import calculate_taxes
from engines.team_cost import calculate_shift_costs, calculate_team_costs


def contract_months(snapshot, params):
    period = (snapshot.get('project') or {}).get('contractPeriod') or {}
    return int(period.get('durationMonths') or params['contractMonths'])


def contract_start(snapshot):
    period = (snapshot.get('project') or {}).get('contractPeriod') or {}
    start = period.get('startDate')
    if isinstance(start, str) and start:
        try:
            start = date.fromisoformat(start[:10])
        except ValueError:
            raise InvalidInputError(f"invalid contract start date '{start}'",
                                    {'field': 'project.contractPeriod.startDate'})
    return start if isinstance(start, date) else date.today()


def run_pricing(snapshot, cache=None, params=None):
    params = {**default_params(), **(params or {})}
    require_mapping(snapshot, 'snapshot')
    team = snapshot.get('team') or []
    schedules = snapshot.get('schedules') or []
    other_costs = snapshot.get('otherCosts') or []
    margin_config = snapshot.get('margin') or {}

    team_costs = calculate_team_costs(team, schedules, cache=cache)
    coverage = run_coverage(schedules)
    shift_costs = calculate_shift_costs(schedules, team)

    margins = calculate_margins(team_costs['totalMonthlyCost'], margin_config, other_costs)
    revenue = (snapshot.get('budget') or {}).get('totalPrice')
    if revenue is None:
        revenue = margins['totalPrice']
    taxes = calculate_taxes(revenue, snapshot.get('taxes') or {}, cache=cache,
                            profit_proxy=params['profitProxy'])

    months = contract_months(snapshot, params)
    start = contract_start(snapshot)
    budget = calculate_consolidated_budget(team_costs, other_costs, taxes, margin_config,
                                           months, start.year, start.month)

    investment = (snapshot.get('budget') or {}).get('investment')
    if investment is None:
        investment = budget['totalCosts']
    returns = [m['profit'] for m in budget['monthlyBreakdown']]
    roi = calculate_roi(investment, returns, params['discountRate'], cache=cache)
    payback = calculate_payback(investment, returns)

    scenario_defs = (snapshot.get('variables') or {}).get('scenarios') or []
    scenarios = run_scenarios(snapshot, scenario_defs, cache=cache,
                              workers=int(params['scenarioWorkers']),
                              profit_proxy=params['profitProxy']) if scenario_defs else []

    return {
        'teamCosts': team_costs,
        'coverage': coverage,
        'shiftCosts': shift_costs,
        'margins': margins,
        'taxes': taxes,
        'budget': budget,
        'roi': roi,
        'payback': payback,
        'scenarios': scenarios,
    }
