"""
ServiceDesk Pricing - Flask API Server
Thin JSON adapter over the calculation engines. Request bodies carry the
input records; responses carry the engine result records unchanged.
"""
import logging
from datetime import date

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from engines.budget import calculate_consolidated_budget
from engines.cache import ServiceDeskCache
from engines.coverage import run_coverage
from engines.data_loader import default_params, load_parameters
from engines.errors import EngineError, InvalidInputError, MarginConfigError
from engines.financial import calculate_payback, calculate_roi
from engines.margin import calculate_margins
from engines.pipeline import run_pricing
from engines.scenarios import compare_scenarios, run_scenarios
from engines.taxes import calculate_taxes
from engines.team_cost import calculate_shift_costs, calculate_team_costs


def _body():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise InvalidInputError('request body must be a JSON object')
    return body


def create_app(params=None, cache=None):
    """App factory; the cache lives exactly as long as the app."""
    app = Flask(__name__)
    params = {**default_params(), **params} if params else load_parameters()
    app.config['ENGINE_PARAMS'] = params
    app.config['CALC_CACHE'] = cache if cache is not None else ServiceDeskCache.from_params(params)

    def _cache():
        return app.config['CALC_CACHE']

    @app.errorhandler(MarginConfigError)
    def _validation_error(e):
        return jsonify({'status': 'error', **e.to_dict()}), 400

    @app.errorhandler(InvalidInputError)
    def _input_error(e):
        return jsonify({'status': 'error', **e.to_dict()}), 422

    @app.errorhandler(EngineError)
    def _engine_error(e):
        logging.exception(f"engine error: {e.message}")
        return jsonify({'status': 'error', **e.to_dict()}), 500

    @app.errorhandler(Exception)
    def _unexpected(e):
        if isinstance(e, HTTPException):
            return e
        logging.exception('unexpected error while calculating')
        return jsonify({'status': 'error', 'errorType': 'system_error', 'message': str(e)}), 500

    # ══════════════════════════════════════════════════════════════
    #  ROUTES
    # ══════════════════════════════════════════════════════════════

    @app.route('/api/team-costs', methods=['POST'])
    def api_team_costs():
        b = _body()
        return jsonify(calculate_team_costs(b.get('team', []), b.get('schedules', []), cache=_cache()))

    @app.route('/api/shift-costs', methods=['POST'])
    def api_shift_costs():
        b = _body()
        return jsonify(calculate_shift_costs(b.get('schedules', []), b.get('team', [])))

    @app.route('/api/coverage', methods=['POST'])
    def api_coverage():
        return jsonify(run_coverage(_body().get('schedules', [])))

    @app.route('/api/taxes', methods=['POST'])
    def api_taxes():
        b = _body()
        return jsonify(calculate_taxes(b.get('revenue', 0), b.get('taxes', {}), cache=_cache(),
                                       profit_proxy=params['profitProxy']))

    @app.route('/api/margins', methods=['POST'])
    def api_margins():
        b = _body()
        return jsonify(calculate_margins(b.get('totalCosts', 0), b.get('margin', {}), b.get('otherCosts', [])))

    @app.route('/api/roi', methods=['POST'])
    def api_roi():
        b = _body()
        return jsonify(calculate_roi(b.get('investment', 0), b.get('returns', []),
                                     b.get('discountRate', params['discountRate']), cache=_cache()))

    @app.route('/api/payback', methods=['POST'])
    def api_payback():
        b = _body()
        return jsonify(calculate_payback(b.get('investment', 0), b.get('returns', [])))

    @app.route('/api/scenarios', methods=['POST'])
    def api_scenarios():
        b = _body()
        results = run_scenarios(b.get('baseline', {}), b.get('scenarios', []), cache=_cache(),
                                workers=int(params['scenarioWorkers']),
                                profit_proxy=params['profitProxy'])
        return jsonify({'results': results, 'comparison': compare_scenarios(results)})

    @app.route('/api/budget', methods=['POST'])
    def api_budget():
        b = _body()
        start = b.get('startYear') or date.today().year
        return jsonify(calculate_consolidated_budget(
            b.get('teamCosts', {}), b.get('otherCosts', []), b.get('taxes', {}), b.get('margin', {}),
            b.get('contractMonths', params['contractMonths']), int(start), int(b.get('startMonth', 1))))

    @app.route('/api/calculate', methods=['POST'])
    def api_calculate():
        return jsonify(run_pricing(_body(), cache=_cache(), params=params))

    @app.route('/api/cache/invalidate', methods=['POST'])
    def api_cache_invalidate():
        domain = _body().get('domain')
        try:
            cleared = _cache().invalidate(domain)
        except KeyError:
            return jsonify({'status': 'error', 'errorType': 'invalid_calculation_input',
                            'message': f"unknown input domain '{domain}'"}), 422
        return jsonify({'status': 'ok', 'cleared': cleared})

    @app.route('/api/cache/stats')
    def api_cache_stats():
        return jsonify(_cache().stats())

    return app


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(message)s')
    app = create_app()
    print("[OK] ServiceDesk pricing engines ready")
    app.run(debug=True, port=5000)
