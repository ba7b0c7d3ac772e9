"""
ServiceDesk Pricing - Data Loader
Engine parameters and workbook snapshots (team, schedules, taxes, other
costs, margin) read from .xlsx files. This is the only module touching disk.
"""
import os
import logging
from collections import defaultdict
import openpyxl

DATA_DIR = os.environ.get('SERVICE_DESK_DATA_DIR',
                          os.path.join(os.path.dirname(os.path.dirname(__file__)), 'data'))


def default_params():
    return {
        'discountRate': 0.10, 'contractMonths': 12,
        'cacheMaxSize': 200, 'teamCacheTTL': 600, 'taxCacheTTL': 600, 'roiCacheTTL': 300,
        'scenarioWorkers': 4, 'profitProxy': 0.20,
    }


PARAM_MAP = {
    'Discount Rate': 'discountRate', 'Contract Months': 'contractMonths',
    'Cache Max Size': 'cacheMaxSize', 'Team Cache TTL': 'teamCacheTTL',
    'Tax Cache TTL': 'taxCacheTTL', 'ROI Cache TTL': 'roiCacheTTL',
    'Scenario Workers': 'scenarioWorkers', 'Profit Proxy': 'profitProxy',
}
INT_PARAMS = ('contractMonths', 'cacheMaxSize', 'scenarioWorkers')


def _num(val, default=0.0):
    if val is None or val == '':
        return default
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


def _csv(val):
    if val is None:
        return []
    return [s.strip() for s in str(val).split(',') if s.strip()]


def _flag(val):
    return str(val).strip().lower() in ('1', 'true', 'yes', 'y', 'sim')


# Sunday = 0, matching the coverage matrix
DAY_ABBREVIATIONS = ('sun', 'mon', 'tue', 'wed', 'thu', 'fri', 'sat')


def _days(val, shift_id):
    """Weekday indexes from a cell like '1,2,3' or 'Mon,Tue'; unusable tokens are skipped."""
    days = []
    for token in _csv(val):
        num = _num(token, None)
        if num is None and token[:3].lower() in DAY_ABBREVIATIONS:
            num = DAY_ABBREVIATIONS.index(token[:3].lower())
        if num is None or not 0 <= num <= 6 or num != int(num):
            logging.warning(f"snapshot: shift '{shift_id}' has unusable weekday '{token}', skipped")
            continue
        days.append(int(num))
    return days


def read_xlsx_sheet(filepath, sheet_name=None):
    wb = openpyxl.load_workbook(filepath, read_only=True, data_only=True)
    try:
        if sheet_name and sheet_name not in wb.sheetnames:
            return []
        ws = wb[sheet_name] if sheet_name else wb.active
        rows = list(ws.iter_rows(values_only=True))
    finally:
        wb.close()
    if len(rows) < 2:
        return []
    headers = [str(h).strip() if h else f'col_{i}' for i, h in enumerate(rows[0])]
    return [dict(zip(headers, row)) for row in rows[1:] if any(v is not None for v in row)]


def _key_values(rows):
    return {str(r.get('Parameter', '')).strip(): r.get('Value') for r in rows}


def load_parameters(path=None):
    """Defaults, overridden by Parameter/Value rows of config/parameters.xlsx."""
    path = path or os.path.join(DATA_DIR, 'config', 'parameters.xlsx')
    p = default_params()
    if not os.path.exists(path):
        return p
    for key, val in _key_values(read_xlsx_sheet(path)).items():
        if key not in PARAM_MAP or val is None:
            continue
        mapped = PARAM_MAP[key]
        num = _num(val, None)
        if num is None:
            logging.warning(f"parameters: ignoring non-numeric value {val!r} for '{key}'")
            continue
        p[mapped] = int(num) if mapped in INT_PARAMS else num
    return p


def _load_team(rows):
    team = []
    for r in rows:
        team.append({
            'id': str(r.get('ID') or r.get('Name')), 'name': r.get('Name') or '',
            'role': r.get('Role') or '',
            'salary': _num(r.get('Salary')), 'workload': _num(r.get('Workload'), 40.0),
            'benefits': {
                'healthInsurance': _num(r.get('Health Insurance')),
                'mealVoucher': _num(r.get('Meal Voucher')),
                'transportVoucher': _num(r.get('Transport Voucher')),
                'lifeInsurance': _num(r.get('Life Insurance')),
                'vacation': _num(r.get('Vacation %')),
                'thirteenthSalary': _num(r.get('13th Salary %')),
                'fgts': _num(r.get('FGTS %'), None),
                'inss': _num(r.get('INSS %')),
                'otherBenefits': [],
            },
            'skills': _csv(r.get('Skills')),
            'certifications': _csv(r.get('Certifications')),
        })
    return team


def _load_schedules(shift_rows, rate_rows):
    schedules = {}
    for r in shift_rows:
        sid = str(r.get('Schedule ID') or 'default')
        sch = schedules.setdefault(sid, {
            'id': sid, 'name': r.get('Schedule Name') or sid, 'shifts': [], 'specialRates': [],
            'coverage': {'minimumStaff': int(_num(r.get('Minimum Staff'))),
                         'preferredStaff': int(_num(r.get('Preferred Staff')))},
        })
        sch['shifts'].append({
            'id': str(r.get('Shift ID')), 'name': r.get('Shift Name') or '',
            'startTime': str(r.get('Start') or '00:00'), 'endTime': str(r.get('End') or '00:00'),
            'daysOfWeek': _days(r.get('Days'), r.get('Shift ID')),
            'teamMembers': _csv(r.get('Members')),
            'isSpecialShift': _flag(r.get('Special')),
            'multiplier': _num(r.get('Multiplier'), 1.0),
        })
    rates = defaultdict(list)
    for r in rate_rows:
        rates[str(r.get('Schedule ID') or 'default')].append({
            'name': r.get('Name') or '', 'condition': r.get('Condition') or '',
            'multiplier': _num(r.get('Multiplier'), 1.0),
            'applicableShifts': _csv(r.get('Shifts')),
        })
    for sid, rs in rates.items():
        if sid in schedules:
            schedules[sid]['specialRates'].extend(rs)
        else:
            logging.warning(f"snapshot: special rates for unknown schedule '{sid}' ignored")
    return list(schedules.values())


def _load_taxes(kv, custom_rows):
    taxes = {'region': kv.get('Region') or '', 'taxRegime': kv.get('Regime') or ''}
    for name in ('ICMS', 'PIS', 'COFINS', 'ISS', 'IR', 'CSLL'):
        taxes[name.lower()] = _num(kv.get(name))
    taxes['customTaxes'] = [{
        'name': r.get('Name') or 'Custom', 'rate': _num(r.get('Rate')),
        'calculationBase': str(r.get('Base') or 'revenue').strip().lower(),
        'description': r.get('Description') or '',
    } for r in custom_rows]
    return taxes


def load_snapshot(filepath):
    """Read a pricing snapshot from a workbook; absent sheets yield empty sections."""
    sheets = {name: read_xlsx_sheet(filepath, name) for name in (
        'Project', 'Team', 'Shifts', 'SpecialRates', 'Taxes', 'CustomTaxes', 'OtherCosts', 'Margin')}
    project = _key_values(sheets['Project'])
    margin = _key_values(sheets['Margin'])

    snapshot = {
        'project': {
            'name': project.get('Name') or '',
            'client': project.get('Client') or '',
            'contractPeriod': {'durationMonths': int(_num(project.get('Duration Months'), 12)),
                               'startDate': project.get('Start Date')},
        },
        'team': _load_team(sheets['Team']),
        'schedules': _load_schedules(sheets['Shifts'], sheets['SpecialRates']),
        'taxes': _load_taxes(_key_values(sheets['Taxes']), sheets['CustomTaxes']),
        'variables': {'scenarios': []},
        'otherCosts': [{
            'id': str(r.get('ID') or r.get('Name')), 'name': r.get('Name') or '',
            'category': str(r.get('Category') or 'other').strip().lower(),
            'value': _num(r.get('Value')), 'frequency': r.get('Frequency') or 'monthly',
        } for r in sheets['OtherCosts']],
        'margin': {
            'type': str(margin.get('Type') or 'percentage').strip().lower(),
            'value': _num(margin.get('Value')),
            'minimumMargin': _num(margin.get('Minimum')),
            'targetMargin': _num(margin.get('Target')),
            'maximumMargin': _num(margin.get('Maximum')),
        },
        'budget': {},
    }
    if project.get('Total Price') is not None:
        snapshot['budget']['totalPrice'] = _num(project.get('Total Price'))
    if project.get('Investment') is not None:
        snapshot['budget']['investment'] = _num(project.get('Investment'))
    logging.info(f"[snapshot] loaded {len(snapshot['team'])} members, "
                 f"{len(snapshot['schedules'])} schedules from {os.path.basename(filepath)}")
    return snapshot
