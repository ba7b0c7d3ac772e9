import copy

import pytest

from engines.errors import InvalidInputError
from engines.scenarios import apply_adjustment, compare_scenarios, evaluate_scenario, run_scenarios
from engines.team_cost import calculate_team_costs

SCENARIOS = [
    {'name': 'Base', 'adjustments': []},
    {'name': 'Salary +10%', 'adjustments': [{'category': 'salary', 'adjustment': 10.0, 'reason': 'union deal'}]},
    {'name': 'Lean', 'adjustments': [{'category': 'costs', 'adjustment': -50.0},
                                     {'category': 'taxes', 'adjustment': -10.0}]},
]


def test_results_follow_scenario_order(snapshot):
    results = run_scenarios(snapshot, SCENARIOS)
    assert [r['scenario']['name'] for r in results] == ['Base', 'Salary +10%', 'Lean']


def test_salary_adjustment_raises_team_costs(snapshot):
    base, raised, _ = run_scenarios(snapshot, SCENARIOS)
    assert raised['results']['teamCosts'] > base['results']['teamCosts']
    assert raised['results']['totalPrice'] > base['results']['totalPrice']


def test_baseline_is_not_mutated(snapshot):
    before = copy.deepcopy(snapshot)
    run_scenarios(snapshot, SCENARIOS)
    assert snapshot == before


def test_base_scenario_matches_direct_calculation(snapshot):
    base = run_scenarios(snapshot, SCENARIOS[:1])[0]['results']
    direct = calculate_team_costs(snapshot['team'], snapshot['schedules'])
    assert base['teamCosts'] == pytest.approx(direct['totalMonthlyCost'])


def test_heuristic_roi_is_relative_only(snapshot):
    # fixed fractions of price: (0.15 - 0.20) / 0.20
    for r in run_scenarios(snapshot, SCENARIOS):
        assert r['results']['roi'] == pytest.approx(-25.0)


def test_parallel_matches_sequential(snapshot, cache):
    seq = run_scenarios(snapshot, SCENARIOS)
    par = run_scenarios(snapshot, SCENARIOS, cache=cache, workers=3)
    assert [r['results'] for r in par] == [r['results'] for r in seq]


def test_apply_adjustment_categories(snapshot):
    data = copy.deepcopy(snapshot)
    data['budget']['totalPrice'] = 1000.0
    apply_adjustment(data, {'category': 'revenue', 'adjustment': 20.0})
    apply_adjustment(data, {'category': 'taxes', 'adjustment': 100.0})
    apply_adjustment(data, {'category': 'costs', 'adjustment': -100.0})
    apply_adjustment(data, {'category': 'headcount', 'adjustment': 50.0})
    assert data['budget']['totalPrice'] == pytest.approx(1200.0)
    assert data['taxes']['iss'] == pytest.approx(10.0)
    assert data['taxes']['region'] == 'SP'
    assert all(c['value'] == 0 for c in data['otherCosts'])
    assert data['team'] == snapshot['team']


def test_revenue_adjustment_drives_taxes(snapshot):
    data = copy.deepcopy(snapshot)
    data['budget']['totalPrice'] = 50000.0
    up = evaluate_scenario(data, {'name': 'Up', 'adjustments': [{'category': 'revenue', 'adjustment': 10.0}]})
    flat = evaluate_scenario(data, {'name': 'Flat', 'adjustments': []})
    assert up['results']['taxes'] == pytest.approx(flat['results']['taxes'] * 1.1)


def test_compare_scenarios_deltas(snapshot):
    rows = compare_scenarios(run_scenarios(snapshot, SCENARIOS))
    assert rows[0]['priceDelta'] == 0
    assert rows[1]['teamCostDelta'] > 0
    assert rows[2]['name'] == 'Lean'
    assert compare_scenarios([]) == []


def test_profit_proxy_reaches_scenario_taxes(snapshot):
    data = copy.deepcopy(snapshot)
    data['budget']['totalPrice'] = 10000.0
    data['taxes'] = {'customTaxes': [{'name': 'Surcharge', 'rate': 10.0, 'calculationBase': 'profit'}]}
    scenario = {'name': 'Base', 'adjustments': []}
    assert evaluate_scenario(data, scenario)['results']['taxes'] == pytest.approx(200.0)
    [result] = run_scenarios(data, [scenario], profit_proxy=0.5)
    assert result['results']['taxes'] == pytest.approx(500.0)


def test_malformed_scenarios_are_input_errors(snapshot):
    with pytest.raises(InvalidInputError):
        run_scenarios(snapshot, ['Base'])
    with pytest.raises(InvalidInputError):
        evaluate_scenario(snapshot, {'name': 'Bad', 'adjustments': ['salary']})
